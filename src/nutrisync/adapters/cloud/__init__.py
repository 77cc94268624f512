"""Public interface for the remote save service adapter."""

from __future__ import annotations

from .client import HttpRemoteSaveGateway

__all__ = [
    "HttpRemoteSaveGateway",
]
