"""Text codec for save records: JSON on the outside, validated records on the inside."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from nutrisync.domain.errors import DecodeError
from nutrisync.domain.validation import validate_record

from .migrations import migrate
from .schema import SaveFileModel
from .translator import to_domain, to_schema

if TYPE_CHECKING:
    from nutrisync.domain.model import SaveRecord

log = getLogger(__name__)


def encode(record: SaveRecord) -> str:
    """Serialise ``record`` to indented JSON stamped with the current schema version."""
    return to_schema(record).model_dump_json(by_alias=True, indent=2)


def decode(text: str | bytes) -> SaveRecord:
    """Parse, migrate, translate and validate a save payload.

    Raises ``DecodeError``; a partially parsed record is never returned.
    """

    try:
        raw = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DecodeError(f"Save payload is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise DecodeError(f"Save payload must be a JSON object, got {type(raw).__name__}")

    payload = migrate(raw)
    try:
        model = SaveFileModel.model_validate(payload)
    except ValidationError as exc:
        log.debug("Save payload failed schema validation: %s", exc)
        raise DecodeError(
            f"Save payload does not match the schema ({exc.error_count()} errors)"
        ) from exc
    return validate_record(to_domain(model))
