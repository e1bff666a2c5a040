"""
Conversions between ``RsvpRecord`` and the native shapes of the
storage backends.

* Documents are plain dicts in the wire shape, used by the JSON file
  backend and by the HTTP layer.
* Rows are SQLite rows whose ``contributions`` column holds the list
  encoded as JSON text.
"""

import json
import logging
import sqlite3
from typing import Any, Dict, List, Mapping, Tuple

from ..schemas.rsvp import RsvpRecord

logger = logging.getLogger(__name__)

ROW_COLUMNS = (
    "id",
    "guest_name",
    "guest_count",
    "notes",
    "contributions",
    "created_at",
    "updated_at",
)


def record_to_document(record: RsvpRecord) -> Dict[str, Any]:
    return record.to_wire()


def document_to_record(document: Mapping[str, Any]) -> RsvpRecord:
    """Build a record from a wire-shaped dict.

    Raises ``pydantic.ValidationError`` if the document is not a valid
    record.
    """
    return RsvpRecord.model_validate(document)


def encode_contributions(contributions: List[str]) -> str:
    return json.dumps(contributions, ensure_ascii=False)


def decode_contributions(raw: Any, rsvp_id: str = "?") -> List[str]:
    """Decode the ``contributions`` column.

    A value that is not a JSON array of strings is logged and read as an
    empty list so that one damaged row does not break reads.
    """
    if raw is None or raw == "":
        return []
    try:
        value = json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        logger.warning("Undecodable contributions for RSVP %s: %r", rsvp_id, raw)
        return []
    if not isinstance(value, list):
        logger.warning("Contributions for RSVP %s is not a list: %r", rsvp_id, raw)
        return []
    return [str(item) for item in value if item is not None]


def record_to_row(record: RsvpRecord) -> Tuple[Any, ...]:
    """Return the bound parameters for an INSERT in ``ROW_COLUMNS`` order."""
    return (
        record.id,
        record.guest_name,
        record.guest_count,
        record.notes,
        encode_contributions(record.contributions),
        record.created_at,
        record.updated_at,
    )


def row_to_record(row: sqlite3.Row) -> RsvpRecord:
    return RsvpRecord(
        id=row["id"],
        guest_name=row["guest_name"],
        guest_count=row["guest_count"],
        notes=row["notes"] or "",
        contributions=decode_contributions(row["contributions"], row["id"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
