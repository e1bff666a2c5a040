"""
Business logic for RSVP entries.

``RsvpService`` ties together the entry validator and a storage
backend.  It is the only place where ids and creation timestamps are
assigned; clients can never choose them.
"""

import logging
from typing import Any, Callable, List

from ..core.ids import generate_rsvp_id, now_ms
from ..schemas.rsvp import RsvpRecord, validate_rsvp_payload
from ..storage.base import StorageBackend

logger = logging.getLogger(__name__)


class RsvpService:
    """Create, list, replace and remove RSVP entries."""

    def __init__(
        self,
        backend: StorageBackend,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[int], str] = generate_rsvp_id,
    ) -> None:
        self.backend = backend
        self.clock = clock
        self.id_factory = id_factory

    def create(self, payload: Any) -> RsvpRecord:
        """Validate ``payload`` and store it as a new entry.

        Raises ``ValidationError`` for bad input (nothing is stored) and
        ``StorageError`` if the entry cannot be persisted.
        """
        fields = validate_rsvp_payload(payload)
        timestamp = self.clock()
        record = RsvpRecord(
            id=self.id_factory(timestamp),
            created_at=timestamp,
            **fields.model_dump(),
        )
        self.backend.insert(record)
        logger.info("Created RSVP %s for %s", record.id, record.guest_name)
        return record

    def list(self) -> List[RsvpRecord]:
        """Return all entries, oldest first."""
        return self.backend.list_all()

    def get(self, rsvp_id: str) -> RsvpRecord:
        """Return one entry or raise ``NotFound``."""
        return self.backend.find_by_id(rsvp_id)

    def replace(self, rsvp_id: str, payload: Any) -> RsvpRecord:
        """Replace every mutable field of an existing entry.

        The payload is validated before the backend is touched, so an
        invalid payload for an unknown id reports the validation error.
        """
        fields = validate_rsvp_payload(payload)
        record = self.backend.update(rsvp_id, fields)
        logger.info("Updated RSVP %s", rsvp_id)
        return record

    def remove(self, rsvp_id: str) -> bool:
        """Delete an entry; ``False`` means there was nothing to delete."""
        removed = self.backend.delete_by_id(rsvp_id)
        if removed:
            logger.info("Deleted RSVP %s", rsvp_id)
        return removed
