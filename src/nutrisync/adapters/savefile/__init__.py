"""Public interface for the local save file adapter."""

from __future__ import annotations

from .codec import decode, encode
from .migrations import migrate
from .schema import SaveFileModel
from .store import FileSaveStore

__all__ = [
    "FileSaveStore",
    "SaveFileModel",
    "decode",
    "encode",
    "migrate",
]
