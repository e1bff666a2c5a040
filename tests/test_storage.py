"""
Storage backend tests.

``TestBackendContract`` runs against both strategies through the
parametrized ``backend`` fixture; the other classes cover behaviour
specific to one strategy.
"""

import json
import logging
import sqlite3
from concurrent.futures import ThreadPoolExecutor

import pytest

from rsvp_collector.app.core.config import Settings
from rsvp_collector.app.core.errors import NotFound, StorageError
from rsvp_collector.app.schemas.rsvp import RsvpFields, RsvpRecord
from rsvp_collector.app.services.rsvp_service import RsvpService
from rsvp_collector.app.storage import JsonFileBackend, SqliteBackend, create_backend


def make_record(rsvp_id: str, created_at: int, **overrides) -> RsvpRecord:
    values = dict(
        id=rsvp_id,
        guest_name=f"Guest {rsvp_id}",
        guest_count=1,
        notes="",
        contributions=["cake"],
        created_at=created_at,
    )
    values.update(overrides)
    return RsvpRecord(**values)


NEW_FIELDS = RsvpFields(
    guest_name="Bruno", guest_count=3, notes="late", contributions=["ice", "cups"]
)


class TestBackendContract:

    def test_empty_collection(self, backend):
        assert backend.list_all() == []

    def test_insert_then_find(self, backend):
        record = make_record("a", 100)
        backend.insert(record)
        assert backend.find_by_id("a") == record

    def test_find_unknown_raises_not_found(self, backend):
        with pytest.raises(NotFound):
            backend.find_by_id("missing")

    def test_duplicate_id_is_rejected(self, backend):
        backend.insert(make_record("a", 100))
        with pytest.raises(StorageError):
            backend.insert(make_record("a", 200, guest_name="Other"))
        assert [r.guest_name for r in backend.list_all()] == ["Guest a"]

    def test_list_is_ordered_by_creation(self, backend):
        for index, rsvp_id in enumerate(["a", "b", "c"]):
            backend.insert(make_record(rsvp_id, 100 + index))
        assert [r.id for r in backend.list_all()] == ["a", "b", "c"]

    def test_update_replaces_mutable_fields(self, backend, clock):
        backend.insert(make_record("a", 100))
        updated = backend.update("a", NEW_FIELDS)

        assert updated.id == "a"
        assert updated.created_at == 100
        assert updated.updated_at is not None and updated.updated_at >= 100
        assert updated.guest_name == "Bruno"
        assert updated.guest_count == 3
        assert updated.notes == "late"
        assert updated.contributions == ["ice", "cups"]
        assert backend.find_by_id("a") == updated

    def test_update_unknown_raises_not_found(self, backend):
        backend.insert(make_record("a", 100))
        with pytest.raises(NotFound):
            backend.update("missing", NEW_FIELDS)
        assert [r.id for r in backend.list_all()] == ["a"]

    def test_update_keeps_position(self, backend):
        for index, rsvp_id in enumerate(["a", "b", "c"]):
            backend.insert(make_record(rsvp_id, 100 + index))
        backend.update("a", NEW_FIELDS)
        assert [r.id for r in backend.list_all()] == ["a", "b", "c"]

    def test_delete(self, backend):
        backend.insert(make_record("a", 100))
        backend.insert(make_record("b", 101))

        assert backend.delete_by_id("a") is True
        assert [r.id for r in backend.list_all()] == ["b"]
        with pytest.raises(NotFound):
            backend.find_by_id("a")
        assert backend.delete_by_id("a") is False

    def test_delete_unknown_returns_false(self, backend):
        assert backend.delete_by_id("missing") is False

    def test_values_are_stored_verbatim(self, backend):
        record = make_record(
            "x'; DROP TABLE rsvps; --",
            100,
            guest_name="O'Brien \"the host\"",
            notes="line one\nline two",
            contributions=["crème brûlée", "a, b", "ça"],
        )
        backend.insert(record)
        assert backend.list_all() == [record]

    def test_initialize_is_idempotent(self, backend):
        backend.insert(make_record("a", 100))
        backend.initialize()
        assert [r.id for r in backend.list_all()] == ["a"]

    def test_oversized_guest_count_is_stored_as_one(self, backend):
        service = RsvpService(backend)
        for count in ("100000000000000000000", 1e300, 2 ** 64):
            created = service.create(
                {"guestName": "Ana", "guestCount": count, "contributions": "x"}
            )
            assert backend.find_by_id(created.id).guest_count == 1
        replaced = service.replace(
            created.id,
            {"guestName": "Ana", "guestCount": "99999999999999999999", "contributions": "x"},
        )
        assert replaced.guest_count == 1


class TestJsonFileBackend:

    def test_initialize_creates_empty_array(self, tmp_path):
        path = tmp_path / "nested" / "rsvps.json"
        JsonFileBackend(path).initialize()
        assert path.read_text(encoding="utf-8") == "[]\n"

    def test_missing_file_reads_as_empty(self, tmp_path):
        backend = JsonFileBackend(tmp_path / "rsvps.json")
        assert backend.list_all() == []
        backend.insert(make_record("a", 100))
        assert (tmp_path / "rsvps.json").exists()

    def test_file_is_pretty_printed_wire_shape(self, tmp_path):
        path = tmp_path / "rsvps.json"
        backend = JsonFileBackend(path)
        record = make_record("a", 100)
        backend.insert(record)

        text = path.read_text(encoding="utf-8")
        assert json.loads(text) == [record.to_wire()]
        assert text.startswith("[\n  {\n    \"")
        assert text.endswith("]\n")
        assert "updatedAt" not in text

    def test_no_temporary_files_left_behind(self, tmp_path):
        backend = JsonFileBackend(tmp_path / "rsvps.json")
        backend.insert(make_record("a", 100))
        backend.update("a", NEW_FIELDS)
        backend.delete_by_id("a")
        assert [p.name for p in tmp_path.iterdir()] == ["rsvps.json"]

    @pytest.mark.parametrize("content", ["{not json", '{"id": "a"}', "\"text\""])
    def test_unreadable_file_lists_as_empty(self, tmp_path, caplog, content):
        path = tmp_path / "rsvps.json"
        path.write_text(content, encoding="utf-8")
        with caplog.at_level(logging.ERROR):
            assert JsonFileBackend(path).list_all() == []
        assert "Failed to read RSVP data" in caplog.text

    def test_corrupt_file_is_not_overwritten(self, tmp_path):
        path = tmp_path / "rsvps.json"
        path.write_text("{not json", encoding="utf-8")
        backend = JsonFileBackend(path)

        with pytest.raises(StorageError):
            backend.insert(make_record("a", 100))
        with pytest.raises(StorageError):
            backend.update("a", NEW_FIELDS)
        with pytest.raises(StorageError):
            backend.delete_by_id("a")
        assert path.read_text(encoding="utf-8") == "{not json"

    def test_malformed_entry_addressed_by_id(self, tmp_path):
        path = tmp_path / "rsvps.json"
        path.write_text(json.dumps([{"id": "a", "guestName": "Ana"}]), encoding="utf-8")
        backend = JsonFileBackend(path)

        with pytest.raises(StorageError):
            backend.find_by_id("a")
        with pytest.raises(StorageError):
            backend.update("a", NEW_FIELDS)
        with pytest.raises(NotFound):
            backend.find_by_id("b")
        assert json.loads(path.read_text(encoding="utf-8")) == [{"id": "a", "guestName": "Ana"}]

    def test_malformed_entries_are_skipped_and_preserved(self, tmp_path):
        path = tmp_path / "rsvps.json"
        good = make_record("a", 100).to_wire()
        path.write_text(json.dumps([{"bogus": True}, "junk", good]), encoding="utf-8")
        backend = JsonFileBackend(path)

        assert [r.id for r in backend.list_all()] == ["a"]
        backend.insert(make_record("b", 101))

        stored = json.loads(path.read_text(encoding="utf-8"))
        assert stored[:2] == [{"bogus": True}, "junk"]
        assert [d["id"] for d in stored[2:]] == ["a", "b"]

    def test_unknown_keys_survive_update(self, tmp_path, clock):
        path = tmp_path / "rsvps.json"
        document = dict(make_record("a", 100).to_wire(), rsvpSource="paper")
        path.write_text(json.dumps([document]), encoding="utf-8")
        backend = JsonFileBackend(path, clock=clock)

        backend.update("a", NEW_FIELDS)

        stored = json.loads(path.read_text(encoding="utf-8"))[0]
        assert stored["rsvpSource"] == "paper"
        assert stored["guestName"] == "Bruno"
        assert stored["createdAt"] == 100

    def test_concurrent_creates_are_all_persisted(self, tmp_path):
        path = tmp_path / "rsvps.json"
        backend = JsonFileBackend(path)
        backend.initialize()
        service = RsvpService(backend)
        count = 50

        def submit(index):
            return service.create({"guestName": f"Guest {index}", "contributions": ["cake"]})

        with ThreadPoolExecutor(max_workers=16) as pool:
            created = list(pool.map(submit, range(count)))

        listed = service.list()
        assert len(listed) == count
        assert len({r.id for r in listed}) == count
        assert {r.id for r in listed} == {r.id for r in created}
        assert len(json.loads(path.read_text(encoding="utf-8"))) == count

    def test_concurrent_updates_and_deletes_do_not_lose_changes(self, tmp_path):
        backend = JsonFileBackend(tmp_path / "rsvps.json")
        for index in range(40):
            backend.insert(make_record(f"r{index}", 100 + index))

        def mutate(index):
            if index % 2:
                backend.delete_by_id(f"r{index}")
            else:
                backend.update(f"r{index}", NEW_FIELDS)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(mutate, range(40)))

        remaining = backend.list_all()
        assert [r.id for r in remaining] == [f"r{i}" for i in range(0, 40, 2)]
        assert all(r.guest_name == "Bruno" for r in remaining)


class TestSqliteBackend:

    def test_orders_by_created_at_not_insertion(self, tmp_path):
        backend = SqliteBackend(tmp_path / "rsvps.db")
        backend.initialize()
        backend.insert(make_record("late", 300))
        backend.insert(make_record("early", 100))
        backend.insert(make_record("middle", 200))
        assert [r.id for r in backend.list_all()] == ["early", "middle", "late"]

    def test_schema_and_migrations(self, tmp_path):
        db_path = tmp_path / "rsvps.db"
        SqliteBackend(db_path).initialize()
        SqliteBackend(db_path).initialize()

        conn = sqlite3.connect(db_path)
        try:
            versions = [row[0] for row in conn.execute("SELECT version FROM migrations")]
            columns = [row[1] for row in conn.execute("PRAGMA table_info(rsvps)")]
        finally:
            conn.close()
        assert versions == [1]
        assert columns == [
            "id",
            "guest_name",
            "guest_count",
            "notes",
            "contributions",
            "created_at",
            "updated_at",
        ]

    def test_contributions_stored_as_json_text(self, tmp_path):
        db_path = tmp_path / "rsvps.db"
        backend = SqliteBackend(db_path)
        backend.initialize()
        backend.insert(make_record("a", 100, contributions=["chips", "soda"]))

        conn = sqlite3.connect(db_path)
        try:
            (raw,) = conn.execute("SELECT contributions FROM rsvps WHERE id = 'a'").fetchone()
        finally:
            conn.close()
        assert json.loads(raw) == ["chips", "soda"]

    def test_damaged_contributions_do_not_break_reads(self, tmp_path, caplog):
        db_path = tmp_path / "rsvps.db"
        backend = SqliteBackend(db_path)
        backend.initialize()
        backend.insert(make_record("a", 100))
        conn = sqlite3.connect(db_path)
        try:
            conn.execute("UPDATE rsvps SET contributions = 'oops' WHERE id = 'a'")
            conn.commit()
        finally:
            conn.close()

        with caplog.at_level(logging.WARNING):
            records = backend.list_all()
        assert [(r.id, r.contributions) for r in records] == [("a", [])]
        assert "Undecodable contributions" in caplog.text

    def test_malformed_rows_are_skipped(self, tmp_path, caplog):
        db_path = tmp_path / "rsvps.db"
        backend = SqliteBackend(db_path)
        backend.initialize()
        backend.insert(make_record("a", 100))
        backend.insert(make_record("b", 101))
        conn = sqlite3.connect(db_path)
        try:
            conn.execute("UPDATE rsvps SET created_at = 'garbage' WHERE id = 'a'")
            conn.commit()
        finally:
            conn.close()

        with caplog.at_level(logging.WARNING):
            assert [r.id for r in backend.list_all()] == ["b"]
        assert "Skipping malformed RSVP row" in caplog.text
        with pytest.raises(StorageError):
            backend.find_by_id("a")
        with pytest.raises(StorageError):
            backend.update("a", NEW_FIELDS)
        conn = sqlite3.connect(db_path)
        try:
            name = conn.execute("SELECT guest_name FROM rsvps WHERE id = 'a'").fetchone()[0]
        finally:
            conn.close()
        assert name == "Guest a"

    def test_out_of_range_integers_are_storage_errors(self, tmp_path):
        backend = SqliteBackend(tmp_path / "rsvps.db")
        backend.initialize()
        with pytest.raises(StorageError):
            backend.insert(make_record("a", 100, guest_count=2 ** 63))
        assert backend.list_all() == []

        backend.insert(make_record("a", 100))
        huge = NEW_FIELDS.model_copy(update={"guest_count": 2 ** 63})
        with pytest.raises(StorageError):
            backend.update("a", huge)
        assert backend.find_by_id("a").guest_count == 1

    def test_unopenable_database(self, tmp_path, caplog):
        # A directory cannot be opened as a database file.
        backend = SqliteBackend(tmp_path)
        with caplog.at_level(logging.ERROR):
            assert backend.list_all() == []
        assert "Failed to read RSVP data" in caplog.text
        with pytest.raises(StorageError):
            backend.insert(make_record("a", 100))
        with pytest.raises(StorageError):
            backend.find_by_id("a")
        with pytest.raises(StorageError):
            backend.delete_by_id("a")

    def test_concurrent_creates_are_all_persisted(self, tmp_path):
        backend = SqliteBackend(tmp_path / "rsvps.db")
        backend.initialize()
        service = RsvpService(backend)

        def submit(index):
            return service.create({"guestName": f"Guest {index}", "contributions": "cake"})

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(submit, range(20)))

        assert len({r.id for r in service.list()}) == 20


class TestCreateBackend:

    def test_json(self, tmp_path):
        backend = create_backend(
            Settings(storage_backend="json", data_file=str(tmp_path / "r.json"))
        )
        assert isinstance(backend, JsonFileBackend)
        assert backend.path == tmp_path / "r.json"

    def test_sqlite(self, tmp_path):
        backend = create_backend(
            Settings(storage_backend="sqlite", database_url=str(tmp_path / "r.db"))
        )
        assert isinstance(backend, SqliteBackend)
        assert backend.db_path == tmp_path / "r.db"

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            create_backend(Settings(storage_backend="postgres"))

    def test_relative_paths_resolve_against_project_root(self):
        from rsvp_collector.app.core.config import BASE_DIR

        backend = create_backend(Settings(storage_backend="json", data_file="data/x.json"))
        assert backend.path == (BASE_DIR / "data" / "x.json").resolve()
