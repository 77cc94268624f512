"""Conflict resolution between a local and a remote save record."""

from __future__ import annotations

from .merge import merge_records
from .resolve import ResolveConflict, resolve

__all__ = ["ResolveConflict", "merge_records", "resolve"]
