"""Connectivity state fed by an HTTP reachability probe."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from nutrisync.adapters.http_resilience import ResilientClient
from nutrisync.config.remote import RemoteConfig, get_remote_config
from nutrisync.domain.ports import ConnectivitySignal

if TYPE_CHECKING:
    from collections.abc import Callable

    from nutrisync.config.http_resilience import ResilienceConfig
    from nutrisync.domain.ports import ConnectivityListener

log = getLogger(__name__)

type ChangeListener = Callable[[bool], None]


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class ConnectivityMonitor:
    """Boolean reachability flag.

    ``subscribe_changed`` listeners hear every transition; ``subscribe_connected``
    listeners only hear the offline -> online edge.
    """

    config: RemoteConfig = field(default_factory=get_remote_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _connected: bool = field(default=False, init=False)
    _on_connected: list[ConnectivityListener] = field(default_factory=list, init=False)
    _on_changed: list[ChangeListener] = field(default_factory=list, init=False)

    @property
    def is_connected(self) -> bool:
        return self._connected

    def subscribe_connected(self, listener: ConnectivityListener) -> None:
        self._on_connected.append(listener)

    def subscribe_changed(self, listener: ChangeListener) -> None:
        self._on_changed.append(listener)

    def update(self, connected: bool) -> None:
        if connected == self._connected:
            return
        self._connected = connected
        log.info("Connectivity %s", "restored" if connected else "lost")
        for listener in list(self._on_changed):
            listener(connected)
        if connected:
            for listener in list(self._on_connected):
                listener()

    async def probe(self) -> bool:
        """Issue a ``HEAD`` to the probe URL and record whether anything answered."""

        url = self.config.probe_url
        if not url:
            log.debug("No probe URL configured, treating as offline")
            self.update(False)
            return False
        try:
            async with self.client_factory(self.config.probe_resilience()) as client:
                response = await client.head(url)
        except httpx.HTTPError as exc:
            log.debug("Connectivity probe to %s failed: %s", url, exc)
            self.update(False)
            return False
        # a client error still proves the network path works
        reachable = response.status_code < httpx.codes.INTERNAL_SERVER_ERROR
        self.update(reachable)
        return reachable


if TYPE_CHECKING:
    _signal_check: ConnectivitySignal = ConnectivityMonitor()
