"""
Pydantic schemas for RSVP entries and the entry validator.

An RSVP holds the guest's name, how many people are coming, free-form
notes and the list of items the guest pledges to bring.  Clients send
and receive camelCase keys (``guestName``, ``guestCount``,
``createdAt``...); the models use snake_case attributes with a camelCase
alias generator.

Submissions arrive as untrusted JSON, so ``validate_rsvp_payload`` does
not rely on pydantic coercion.  It applies explicit rules instead:

* ``guestName`` must be a string that is non-empty once trimmed;
* ``guestCount`` is parsed as an integer and falls back to 1 when it is
  missing, unparsable, not positive or larger than ``MAX_GUEST_COUNT``;
* ``notes`` is trimmed; anything that is not a string becomes ``""``;
* ``contributions`` may be a list or a comma-separated string; items are
  trimmed and empty ones dropped, and at least one must remain.

Only the first violated rule is reported.
"""

import json
import math
import re
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.errors import ValidationError

GUEST_NAME_REQUIRED = "Guest name is required."
CONTRIBUTION_REQUIRED = "At least one contribution is required."

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")

# Largest value an SQLite INTEGER column holds.
MAX_GUEST_COUNT = 2 ** 63 - 1


class RsvpBase(BaseModel):
    """Fields shared by submissions and stored entries."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    guest_name: str = Field(..., description="Name of the guest")
    guest_count: int = Field(1, description="Number of people attending")
    notes: str = Field("", description="Free-form notes from the guest")
    contributions: List[str] = Field(
        default_factory=list, description="Items the guest will bring"
    )


class RsvpFields(RsvpBase):
    """The mutable part of an RSVP, as produced by the validator."""

    guest_name: str = Field(..., min_length=1)
    guest_count: int = Field(1, ge=1)
    contributions: List[str] = Field(..., min_length=1)


class RsvpRecord(RsvpBase):
    """A stored RSVP entry."""

    id: str
    created_at: int = Field(..., description="Creation time, epoch milliseconds")
    updated_at: Optional[int] = Field(
        None, description="Time of the last update, epoch milliseconds"
    )

    def to_wire(self) -> dict:
        """Return the JSON shape sent to clients.

        ``updatedAt`` is left out entirely for entries that were never
        updated.
        """
        return self.model_dump(by_alias=True, exclude_none=True)


def coerce_guest_count(value: Any) -> int:
    """Parse ``value`` as a positive integer, defaulting to 1.

    Strings are read up to the first non-digit (``"3 people"`` -> 3,
    ``"2.7"`` -> 2) and numbers are truncated.  Booleans, ``None`` and
    anything else that does not yield a positive integer give 1, and so
    do counts above ``MAX_GUEST_COUNT``, which no storage backend could
    hold.
    """
    if isinstance(value, bool) or value is None:
        return 1
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            return 1
        number = int(value)
    elif isinstance(value, str):
        match = _INT_PREFIX.match(value)
        if not match:
            return 1
        number = int(match.group(1))
    else:
        return 1
    return number if 0 < number <= MAX_GUEST_COUNT else 1


def normalize_notes(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


def _item_to_text(item: Any) -> str:
    """Render one contribution item as text.

    ``None`` is empty (and later dropped), booleans are ``"true"`` and
    ``"false"`` and whole floats lose their fraction (``1.0`` -> ``"1"``),
    so a number reads the same whichever JSON spelling the client used.
    Nested objects and arrays go through ``json.dumps``.
    """
    if item is None:
        return ""
    if isinstance(item, bool):
        return "true" if item else "false"
    if isinstance(item, float) and item.is_integer():
        return str(int(item))
    if isinstance(item, (dict, list)):
        return json.dumps(item, ensure_ascii=False)
    return str(item)


def normalize_contributions(value: Any) -> List[str]:
    """Turn a list or comma-separated string into a clean list of items."""
    if isinstance(value, (list, tuple)):
        items = [_item_to_text(item) for item in value]
    elif isinstance(value, str):
        items = value.split(",")
    else:
        return []
    return [item.strip() for item in items if item.strip()]


def validate_rsvp_payload(payload: Any) -> RsvpFields:
    """Validate a raw submission and return its canonical fields.

    Raises
    ------
    ValidationError
        If the guest name is missing or no contribution remains after
        normalization.
    """
    if not isinstance(payload, Mapping):
        payload = {}

    raw_name = payload.get("guestName")
    guest_name = raw_name.strip() if isinstance(raw_name, str) else ""
    if not guest_name:
        raise ValidationError(GUEST_NAME_REQUIRED)

    guest_count = coerce_guest_count(payload.get("guestCount"))
    notes = normalize_notes(payload.get("notes"))
    contributions = normalize_contributions(payload.get("contributions"))
    if not contributions:
        raise ValidationError(CONTRIBUTION_REQUIRED)

    return RsvpFields(
        guest_name=guest_name,
        guest_count=guest_count,
        notes=notes,
        contributions=contributions,
    )
