"""Client factories that route ``ResilientClient`` traffic to in-process handlers."""

from __future__ import annotations

from collections.abc import Callable  # noqa: TC003

import httpx

from nutrisync.adapters.http_resilience import ResilientClient
from nutrisync.config.http_resilience import ResilienceConfig  # noqa: TC001


def make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            transport=httpx.MockTransport(async_handler),
            headers=resilience.default_headers,
        )
        return client

    return factory
