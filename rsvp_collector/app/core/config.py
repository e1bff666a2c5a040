"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
service starts with a JSON snapshot file under ``data/`` and serves the
front-end from ``public/``.  Override values via environment variables
or by passing an explicit ``Settings`` instance to ``create_app``.
"""

import os
from dataclasses import dataclass
from pathlib import Path


# Project root: the directory that contains the ``rsvp_collector`` package.
BASE_DIR = Path(__file__).resolve().parent.parent.parent.parent

STORAGE_BACKENDS = {"json", "sqlite"}


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "RSVP Collector")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    # Optional path of a log file in addition to the console handler.
    log_file: str = os.getenv("LOG_FILE", "")

    # ``json`` keeps the whole collection in one JSON array file;
    # ``sqlite`` stores one row per RSVP in an embedded database.
    storage_backend: str = os.getenv("STORAGE_BACKEND", "json").lower()
    data_file: str = os.getenv("DATA_FILE", "data/rsvps.json")
    database_url: str = os.getenv("DATABASE_URL", "data/rsvps.db")

    static_dir: str = os.getenv("STATIC_DIR", "public")
    cors_enabled: bool = _env_flag("CORS_ENABLED")

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3000"))

    def resolve_path(self, value: str) -> Path:
        """Return ``value`` as an absolute path.

        Absolute paths are returned unchanged; relative ones are
        resolved against the project root.
        """
        path = Path(value)
        if path.is_absolute():
            return path
        return (BASE_DIR / path).resolve()


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# must be set before this module is imported.
settings = Settings()
