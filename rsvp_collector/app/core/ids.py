"""Timestamp and identifier helpers."""

import secrets
import time


def now_ms() -> int:
    """Return the current UNIX time in whole milliseconds."""
    return time.time_ns() // 1_000_000


def generate_rsvp_id(timestamp: int) -> str:
    """Build a new RSVP id: the creation timestamp plus 64 random bits."""
    return f"{timestamp}-{secrets.token_hex(8)}"
