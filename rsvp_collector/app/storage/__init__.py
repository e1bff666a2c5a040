"""
Persistence backends for RSVP records.

Two interchangeable strategies implement ``StorageBackend``:
``JsonFileBackend`` (whole collection in one JSON file) and
``SqliteBackend`` (one row per record).  ``create_backend`` picks one
from the application settings.
"""

from ..core.config import STORAGE_BACKENDS, Settings
from .base import StorageBackend
from .json_file import JsonFileBackend
from .sqlite import SqliteBackend

__all__ = ["StorageBackend", "JsonFileBackend", "SqliteBackend", "create_backend"]


def create_backend(settings: Settings) -> StorageBackend:
    """Instantiate the backend named by ``settings.storage_backend``."""
    kind = settings.storage_backend
    if kind == "json":
        return JsonFileBackend(settings.resolve_path(settings.data_file))
    if kind == "sqlite":
        return SqliteBackend(settings.resolve_path(settings.database_url))
    raise ValueError(
        f"Unknown storage backend {kind!r}; expected one of {sorted(STORAGE_BACKENDS)}"
    )
