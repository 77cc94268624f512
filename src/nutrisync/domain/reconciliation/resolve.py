"""Strategy dispatch for local/remote save conflicts.

Responsibilities of this stage:
- pick a whole side (``USE_LOCAL``, ``USE_REMOTE``, ``USE_NEWER``) or delegate to
  ``merge_records`` for field-by-field reconciliation
- return a fresh record; inputs are never mutated

Out of scope for this stage:
- persistence of the outcome
- pushing the outcome to the remote gateway
"""

from __future__ import annotations

import copy
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from nutrisync.domain.model import ConflictStrategy, utcnow

from .merge import merge_records

if TYPE_CHECKING:
    from datetime import datetime

    from nutrisync.domain.model import SaveRecord

log = getLogger(__name__)


class ResolveConflict(Protocol):
    """Resolve a local record against an optional remote one."""

    def __call__(
        self,
        local: SaveRecord,
        remote: SaveRecord | None,
        strategy: ConflictStrategy = ConflictStrategy.USE_NEWER,
        *,
        now: datetime | None = None,
    ) -> SaveRecord: ...


def resolve(
    local: SaveRecord,
    remote: SaveRecord | None,
    strategy: ConflictStrategy = ConflictStrategy.USE_NEWER,
    *,
    now: datetime | None = None,
) -> SaveRecord:
    """Combine ``local`` and ``remote`` into a new record according to ``strategy``."""

    if remote is None:
        log.debug("No remote record, keeping local")
        return copy.deepcopy(local)

    match strategy:
        case ConflictStrategy.USE_LOCAL:
            log.info("Conflict resolved: using local record")
            return copy.deepcopy(local)
        case ConflictStrategy.USE_REMOTE:
            log.info("Conflict resolved: using remote record")
            return copy.deepcopy(remote)
        case ConflictStrategy.USE_NEWER:
            return copy.deepcopy(_newer(local, remote))
        case ConflictStrategy.MERGE:
            return merge_records(local, remote, now=now or utcnow())


def _newer(local: SaveRecord, remote: SaveRecord) -> SaveRecord:
    if remote.last_save_time > local.last_save_time:
        log.info(
            "Conflict resolved by timestamp: using remote (local=%s, remote=%s)",
            local.last_save_time.isoformat(),
            remote.last_save_time.isoformat(),
        )
        return remote
    # ties resolve to local
    log.info(
        "Conflict resolved by timestamp: using local (local=%s, remote=%s)",
        local.last_save_time.isoformat(),
        remote.last_save_time.isoformat(),
    )
    return local
