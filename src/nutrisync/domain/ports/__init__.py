"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import SaveStore
from .remote import ConnectivityListener, ConnectivitySignal, RemoteSaveGateway

__all__ = [
    "ConnectivityListener",
    "ConnectivitySignal",
    "RemoteSaveGateway",
    "SaveStore",
]
