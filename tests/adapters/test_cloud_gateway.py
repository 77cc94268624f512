from __future__ import annotations

import asyncio
import json
from collections.abc import Callable  # noqa: TC003

import httpx
import pytest

from nutrisync.adapters.cloud import HttpRemoteSaveGateway
from nutrisync.adapters.savefile import encode
from nutrisync.config import RemoteConfig
from nutrisync.domain.errors import RemoteError, RemoteUnavailableError
from tests.helpers.http import make_client_factory
from tests.helpers.save_records import OWNER_ID, FakeConnectivity, make_record

REMOTE = RemoteConfig(base_url="https://saves.example.test/api/", token="secret-token")


def _gateway(
    handler: Callable[[httpx.Request], httpx.Response],
    *,
    config: RemoteConfig = REMOTE,
    connectivity: FakeConnectivity | None = None,
) -> HttpRemoteSaveGateway:
    return HttpRemoteSaveGateway(
        owner_id=OWNER_ID,
        config=config,
        connectivity=connectivity,
        client_factory=make_client_factory(handler),
    )


def test_fetch_returns_none_when_nothing_uploaded() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(404)

    assert asyncio.run(_gateway(handler).fetch()) is None
    assert requests[0].method == "GET"
    assert str(requests[0].url) == "https://saves.example.test/api/saves/owner-1"


def test_fetch_decodes_stored_record() -> None:
    stored = make_record(highest_score=64, current_tower=2)

    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=encode(stored).encode("utf-8"))

    record = asyncio.run(_gateway(handler).fetch())

    assert record == stored


def test_push_sends_document_with_auth_header() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(204)

    asyncio.run(_gateway(handler).push(make_record(highest_score=9)))

    request = requests[0]
    assert request.method == "PUT"
    assert request.headers["Authorization"] == "Bearer secret-token"
    assert request.headers["Content-Type"] == "application/json"
    body = json.loads(request.content)
    assert body["ownerId"] == OWNER_ID
    assert body["user"]["highestScore"] == 9


def test_owner_id_is_url_quoted() -> None:
    gateway = HttpRemoteSaveGateway(owner_id="a b/c", config=REMOTE)

    assert gateway.save_url() == "https://saves.example.test/api/saves/a%20b%2Fc"


@pytest.mark.parametrize("status", [401, 500, 503])
def test_error_status_raises_remote_error(status: int) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(status)

    gateway = _gateway(handler)

    with pytest.raises(RemoteError) as excinfo:
        asyncio.run(gateway.fetch())
    assert excinfo.value.status_code == status

    with pytest.raises(RemoteError):
        asyncio.run(gateway.push(make_record()))


def test_transport_error_raises_remote_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RemoteError, match="connection refused"):
        asyncio.run(_gateway(handler).fetch())


def test_undecodable_remote_document_raises_remote_error() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>maintenance</html>")

    with pytest.raises(RemoteError, match="could not be decoded"):
        asyncio.run(_gateway(handler).fetch())


def test_remote_document_for_other_owner_is_rejected() -> None:
    foreign = make_record(owner_id="someone-else")

    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=encode(foreign).encode("utf-8"))

    with pytest.raises(RemoteError, match="someone-else"):
        asyncio.run(_gateway(handler).fetch())


def test_availability_requires_config_and_connectivity() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200)

    connectivity = FakeConnectivity(connected=False)

    assert _gateway(handler).is_available() is True
    assert _gateway(handler, config=RemoteConfig()).is_available() is False
    assert _gateway(handler, connectivity=connectivity).is_available() is False
    connectivity.set(True)
    assert _gateway(handler, connectivity=connectivity).is_available() is True


def test_unconfigured_gateway_refuses_requests() -> None:
    gateway = HttpRemoteSaveGateway(owner_id=OWNER_ID, config=RemoteConfig())

    with pytest.raises(RemoteUnavailableError):
        asyncio.run(gateway.fetch())


def test_push_transport_error_raises_remote_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PUT"
        raise httpx.ReadTimeout("upload stalled", request=request)

    with pytest.raises(RemoteError, match="PUT failed: upload stalled"):
        asyncio.run(_gateway(handler).push(make_record()))
