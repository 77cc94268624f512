"""Port for the durable local copy of a save record."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from nutrisync.domain.model import SaveRecord


@runtime_checkable
class SaveStore(Protocol):
    """Single source of truth for the on-disk save record.

    ``save`` raises ``ConcurrencyRejectedError`` when another save is in flight and
    ``SaveIOError`` when the write fails; ``load`` never raises.
    """

    @property
    def record(self) -> SaveRecord | None: ...

    @property
    def is_dirty(self) -> bool: ...

    @property
    def is_saving(self) -> bool: ...

    def load(self) -> SaveRecord: ...

    async def save(self, *, create_backup: bool = True) -> SaveRecord: ...

    def mark_dirty(self) -> None: ...

    def set_record(self, record: SaveRecord) -> None: ...

    def snapshot(self) -> SaveRecord: ...

    def delete(self) -> None: ...
