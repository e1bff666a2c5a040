"""
Abstract storage backend.

Every persistence strategy stores a single collection of RSVP records
and implements the operations below.  Each call is atomic with respect
to other callers of the same backend instance.
"""

from abc import ABC, abstractmethod
from typing import Callable, List

from ..core.ids import now_ms
from ..schemas.rsvp import RsvpFields, RsvpRecord


class StorageBackend(ABC):
    """Interface shared by the JSON file and SQLite backends."""

    #: Short name used in logs only.
    kind = "abstract"

    def __init__(self, clock: Callable[[], int] = now_ms) -> None:
        self.clock = clock

    @abstractmethod
    def initialize(self) -> None:
        """Prepare the storage medium (create files, tables...)."""

    @abstractmethod
    def list_all(self) -> List[RsvpRecord]:
        """Return every record ordered by ascending ``created_at``.

        Read failures are logged and yield an empty list; this method
        never raises ``StorageError``.
        """

    @abstractmethod
    def insert(self, record: RsvpRecord) -> None:
        """Persist a new record.

        Raises ``StorageError`` if the id already exists or the medium
        cannot be written.
        """

    @abstractmethod
    def find_by_id(self, rsvp_id: str) -> RsvpRecord:
        """Return the record with ``rsvp_id`` or raise ``NotFound``."""

    @abstractmethod
    def update(self, rsvp_id: str, fields: RsvpFields) -> RsvpRecord:
        """Replace the mutable fields of a record and stamp ``updated_at``.

        ``id`` and ``created_at`` are preserved.  Raises ``NotFound``
        if the record does not exist.
        """

    @abstractmethod
    def delete_by_id(self, rsvp_id: str) -> bool:
        """Delete a record; return ``False`` when nothing matched."""
