"""
Snapshot-file storage: the whole collection lives in one JSON array.

Every mutation reads the current array, changes it in memory and writes
the complete array back.  All of that happens while holding a lock owned
by the backend instance, so two concurrent writers can never read the
same snapshot and drop each other's change.  The new snapshot is written
to a temporary file and moved over the old one with ``os.replace``,
which means readers see either the old or the new file, never a partial
one.

File format: a JSON array pretty-printed with two-space indentation,
one wire-shaped record per element, followed by a newline.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Iterator, List, Tuple, Union

from pydantic import ValidationError as SchemaError

from ..core.errors import NotFound, StorageError
from ..core.ids import now_ms
from ..schemas.rsvp import RsvpFields, RsvpRecord
from .base import StorageBackend
from .mapper import document_to_record, record_to_document

logger = logging.getLogger(__name__)


def _has_id(document: Any, rsvp_id: str) -> bool:
    return isinstance(document, dict) and document.get("id") == rsvp_id


def _index_of(documents: List[Any], rsvp_id: str) -> int:
    for index, document in enumerate(documents):
        if _has_id(document, rsvp_id):
            return index
    raise NotFound(rsvp_id)


def _stored_record(document: dict, rsvp_id: str) -> RsvpRecord:
    """Map the element carrying ``rsvp_id``; a malformed one is a storage fault."""
    try:
        return document_to_record(document)
    except SchemaError as exc:
        raise StorageError(f"Stored RSVP {rsvp_id} is malformed: {exc}") from exc


class JsonFileBackend(StorageBackend):
    """Stores all RSVPs in a single JSON file rewritten on every change."""

    kind = "json"

    def __init__(self, path: Union[str, Path], clock: Callable[[], int] = now_ms) -> None:
        super().__init__(clock)
        self.path = Path(path)
        # Reentrant so helpers may be called while the lock is held.
        self._lock = threading.RLock()

    def initialize(self) -> None:
        """Create the data directory and an empty ``[]`` file if missing."""
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                if not self.path.exists():
                    self._write_documents([])
                    logger.info("Created empty RSVP data file %s", self.path)
            except OSError as exc:
                raise StorageError(f"Cannot prepare {self.path}: {exc}") from exc

    # ------------------------------------------------------------------
    # File access (callers must hold ``self._lock``)
    # ------------------------------------------------------------------
    def _read_documents(self) -> List[Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Cannot read {self.path}: {exc}") from exc
        try:
            documents = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageError(f"{self.path} is not valid JSON: {exc}") from exc
        if not isinstance(documents, list):
            raise StorageError(f"{self.path} does not contain a JSON array")
        return documents

    def _write_documents(self, documents: List[Any]) -> None:
        payload = json.dumps(documents, indent=2, ensure_ascii=False) + "\n"
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"Cannot write {self.path}: {exc}") from exc

    def _records(self, documents: List[Any]) -> Iterator[Tuple[int, RsvpRecord]]:
        """Yield ``(index, record)`` for every element that maps to a record.

        Elements that do not are skipped here but stay in ``documents``
        and are written back unchanged.
        """
        for index, document in enumerate(documents):
            if not isinstance(document, dict):
                logger.warning("Skipping non-object entry #%d in %s", index, self.path)
                continue
            try:
                yield index, document_to_record(document)
            except SchemaError as exc:
                logger.warning(
                    "Skipping malformed entry #%d in %s: %s", index, self.path, exc
                )

    # ------------------------------------------------------------------
    # StorageBackend
    # ------------------------------------------------------------------
    def list_all(self) -> List[RsvpRecord]:
        with self._lock:
            try:
                documents = self._read_documents()
            except StorageError:
                logger.exception("Failed to read RSVP data")
                return []
            return [record for _, record in self._records(documents)]

    def insert(self, record: RsvpRecord) -> None:
        with self._lock:
            documents = self._read_documents()
            if any(_has_id(document, record.id) for document in documents):
                raise StorageError(f"RSVP {record.id} already exists")
            documents.append(record_to_document(record))
            self._write_documents(documents)

    def find_by_id(self, rsvp_id: str) -> RsvpRecord:
        with self._lock:
            documents = self._read_documents()
            return _stored_record(documents[_index_of(documents, rsvp_id)], rsvp_id)

    def update(self, rsvp_id: str, fields: RsvpFields) -> RsvpRecord:
        with self._lock:
            documents = self._read_documents()
            index = _index_of(documents, rsvp_id)
            current = _stored_record(documents[index], rsvp_id)

            updated = RsvpRecord(
                id=current.id,
                created_at=current.created_at,
                updated_at=self.clock(),
                **fields.model_dump(),
            )
            # Keys this service does not know about are carried over.
            document = dict(documents[index])
            document.update(record_to_document(updated))
            documents[index] = document
            self._write_documents(documents)
            return updated

    def delete_by_id(self, rsvp_id: str) -> bool:
        with self._lock:
            documents = self._read_documents()
            remaining = [d for d in documents if not _has_id(d, rsvp_id)]
            if len(remaining) == len(documents):
                return False
            self._write_documents(remaining)
            return True
