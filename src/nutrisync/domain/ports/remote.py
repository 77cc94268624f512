"""Ports for the remote save replica and the connectivity signal."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from nutrisync.domain.model import SaveRecord

type ConnectivityListener = Callable[[], None]


@runtime_checkable
class RemoteSaveGateway(Protocol):
    """Contract the sync coordinator expects from a remote save backend.

    ``fetch`` returns ``None`` when no remote copy exists yet. Both ``fetch`` and
    ``push`` raise ``RemoteError`` (or ``RemoteUnavailableError``) on failure; timeouts
    are bounded by the gateway itself.
    """

    def is_available(self) -> bool: ...

    async def fetch(self) -> SaveRecord | None: ...

    async def push(self, record: SaveRecord) -> None: ...


@runtime_checkable
class ConnectivitySignal(Protocol):
    """Boolean connectivity state with a rising-edge notification."""

    @property
    def is_connected(self) -> bool: ...

    def subscribe_connected(self, listener: ConnectivityListener) -> None: ...
