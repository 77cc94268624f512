"""HTTP client for the remote save service.

The service stores one JSON document per owner at ``{base_url}/saves/{owner_id}``, in
the same format as the local save file:

- ``GET`` returns the document, or ``404`` when nothing was uploaded yet
- ``PUT`` replaces the document
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx

from nutrisync.adapters.http_resilience import ResilientClient
from nutrisync.adapters.savefile import decode, encode
from nutrisync.config.remote import RemoteConfig, get_remote_config
from nutrisync.domain.errors import DecodeError, RemoteError, RemoteUnavailableError
from nutrisync.domain.ports import RemoteSaveGateway

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from nutrisync.config.http_resilience import ResilienceConfig
    from nutrisync.domain.model import OwnerId, SaveRecord
    from nutrisync.domain.ports import ConnectivitySignal

log = getLogger(__name__)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class HttpRemoteSaveGateway:
    owner_id: OwnerId
    config: RemoteConfig = field(default_factory=get_remote_config)
    connectivity: ConnectivitySignal | None = None
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def is_available(self) -> bool:
        if not self.config.is_configured:
            return False
        return self.connectivity is None or self.connectivity.is_connected

    def save_url(self) -> str:
        if not self.config.base_url:
            raise RemoteUnavailableError("Remote save service is not configured")
        base = self.config.base_url.rstrip("/")
        return f"{base}/saves/{quote(self.owner_id, safe='')}"

    async def fetch(self) -> SaveRecord | None:
        url = self.save_url()
        async with self.client_factory(self.config.resilience()) as client:
            response = await self._send("GET", client.get(url))

        if response.status_code == httpx.codes.NOT_FOUND:
            log.info("No remote save stored for owner %s", self.owner_id)
            return None
        self._raise_for_status(response)

        try:
            record = decode(response.content)
        except DecodeError as exc:
            raise RemoteError(f"Remote save could not be decoded: {exc}") from exc
        if record.owner_id != self.owner_id:
            raise RemoteError(
                f"Remote save belongs to {record.owner_id!r}, expected {self.owner_id!r}"
            )
        log.info("Fetched remote save for owner %s", self.owner_id)
        return record

    async def push(self, record: SaveRecord) -> None:
        url = self.save_url()
        payload = encode(record)
        async with self.client_factory(self.config.resilience()) as client:
            response = await self._send(
                "PUT",
                client.put(
                    url,
                    content=payload.encode("utf-8"),
                    headers={"Content-Type": "application/json"},
                ),
            )
        self._raise_for_status(response)
        log.info("Pushed save for owner %s", self.owner_id)

    async def _send(self, method: str, pending: Awaitable[httpx.Response]) -> httpx.Response:
        try:
            return await pending
        except httpx.HTTPError as exc:
            log.error(f"Remote save {method} failed: {exc}")
            raise RemoteError(f"Remote save {method} failed: {exc}") from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        raise RemoteError(
            f"Remote save service answered {response.status_code} for "
            f"{response.request.method} {response.request.url}",
            status_code=response.status_code,
        )


if TYPE_CHECKING:
    _gateway_check: RemoteSaveGateway = HttpRemoteSaveGateway(owner_id="owner")
