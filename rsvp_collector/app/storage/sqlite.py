"""
Record-oriented storage: one SQLite row per RSVP.

Each operation opens its own connection and runs as a single
transaction, so SQLite's locking makes every call atomic without an
application-level lock.  When an update and a delete race on the same
id, whichever commits last wins.  The ``contributions`` list is stored
as JSON text.

Rows that no longer map to a record are skipped by ``list_all`` and
reported as a ``StorageError`` when addressed by id, the same way the
snapshot-file backend treats malformed elements.

All statements use bound parameters.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Callable, List, Union

from pydantic import ValidationError as SchemaError

from ..core.db import get_cursor, init_db
from ..core.errors import NotFound, StorageError
from ..core.ids import now_ms
from ..schemas.rsvp import RsvpFields, RsvpRecord
from .base import StorageBackend
from .mapper import ROW_COLUMNS, encode_contributions, record_to_row, row_to_record

logger = logging.getLogger(__name__)

_SELECT = f"SELECT {', '.join(ROW_COLUMNS)} FROM rsvps"
_INSERT = (
    f"INSERT INTO rsvps ({', '.join(ROW_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in ROW_COLUMNS)})"
)


class SqliteBackend(StorageBackend):
    """Stores RSVPs in the ``rsvps`` table of an SQLite database file."""

    kind = "sqlite"

    def __init__(self, db_path: Union[str, Path], clock: Callable[[], int] = now_ms) -> None:
        super().__init__(clock)
        # A file path is required: ``:memory:`` would give every
        # connection its own empty database.
        self.db_path = Path(db_path)

    def initialize(self) -> None:
        try:
            init_db(self.db_path)
        except (sqlite3.Error, OSError) as exc:
            raise StorageError(f"Cannot initialise {self.db_path}: {exc}") from exc

    def list_all(self) -> List[RsvpRecord]:
        try:
            with get_cursor(self.db_path) as cursor:
                rows = cursor.execute(
                    f"{_SELECT} ORDER BY created_at ASC, rowid ASC"
                ).fetchall()
        except sqlite3.Error:
            logger.exception("Failed to read RSVP data from %s", self.db_path)
            return []
        records = []
        for row in rows:
            try:
                records.append(row_to_record(row))
            except SchemaError:
                logger.warning("Skipping malformed RSVP row %r in %s", row["id"], self.db_path)
        return records

    def insert(self, record: RsvpRecord) -> None:
        try:
            with get_cursor(self.db_path) as cursor:
                cursor.execute(_INSERT, record_to_row(record))
        except sqlite3.IntegrityError as exc:
            raise StorageError(f"RSVP {record.id} already exists") from exc
        except (sqlite3.Error, OverflowError) as exc:
            raise StorageError(f"Cannot insert RSVP {record.id}: {exc}") from exc

    def find_by_id(self, rsvp_id: str) -> RsvpRecord:
        try:
            with get_cursor(self.db_path) as cursor:
                row = cursor.execute(f"{_SELECT} WHERE id = ?", (rsvp_id,)).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot read RSVP {rsvp_id}: {exc}") from exc
        if row is None:
            raise NotFound(rsvp_id)
        return self._to_record(row)

    def update(self, rsvp_id: str, fields: RsvpFields) -> RsvpRecord:
        try:
            with get_cursor(self.db_path) as cursor:
                cursor.execute(
                    """
                    UPDATE rsvps
                    SET guest_name = ?, guest_count = ?, notes = ?, contributions = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        fields.guest_name,
                        fields.guest_count,
                        fields.notes,
                        encode_contributions(fields.contributions),
                        self.clock(),
                        rsvp_id,
                    ),
                )
                if cursor.rowcount == 0:
                    raise NotFound(rsvp_id)
                # Read back inside the same transaction.
                row = cursor.execute(f"{_SELECT} WHERE id = ?", (rsvp_id,)).fetchone()
                record = self._to_record(row)
        except (sqlite3.Error, OverflowError) as exc:
            raise StorageError(f"Cannot update RSVP {rsvp_id}: {exc}") from exc
        return record

    def delete_by_id(self, rsvp_id: str) -> bool:
        try:
            with get_cursor(self.db_path) as cursor:
                cursor.execute("DELETE FROM rsvps WHERE id = ?", (rsvp_id,))
                deleted = cursor.rowcount > 0
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot delete RSVP {rsvp_id}: {exc}") from exc
        return deleted

    def _to_record(self, row: sqlite3.Row) -> RsvpRecord:
        try:
            return row_to_record(row)
        except SchemaError as exc:
            raise StorageError(f"RSVP {row['id']} in {self.db_path} is malformed") from exc
