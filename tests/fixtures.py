"""Helpers shared by the test modules."""

import itertools

from rsvp_collector.app.core.config import Settings


class FakeClock:
    """Deterministic millisecond clock that advances on every call."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1000) -> None:
        self._ticks = itertools.count(start, step)

    def __call__(self) -> int:
        return next(self._ticks)


def make_settings(tmp_path, storage_backend="json", **overrides) -> Settings:
    """Settings pointing every path into ``tmp_path``, with a tiny front-end."""
    static_dir = tmp_path / "public"
    static_dir.mkdir(exist_ok=True)
    (static_dir / "index.html").write_text("<h1>RSVP</h1>", encoding="utf-8")
    values = dict(
        storage_backend=storage_backend,
        data_file=str(tmp_path / "data" / "rsvps.json"),
        database_url=str(tmp_path / "data" / "rsvps.db"),
        static_dir=str(static_dir),
        cors_enabled=False,
    )
    values.update(overrides)
    return Settings(**values)
