"""
Error taxonomy shared by the validator, the storage backends and the
service layer.

The HTTP layer translates these exceptions into status codes:
``ValidationError`` -> 400, ``NotFound`` -> 404, ``StorageError`` ->
500.  Messages carried by ``ValidationError`` are meant for end users;
``StorageError`` messages are only logged and never sent to clients.
"""


class RsvpError(Exception):
    """Base class for all RSVP domain errors."""


class ValidationError(RsvpError):
    """Raised when a submission violates one of the entry rules."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(RsvpError):
    """Raised when no RSVP with the requested id exists."""

    def __init__(self, rsvp_id: str) -> None:
        super().__init__(f"RSVP {rsvp_id} not found")
        self.rsvp_id = rsvp_id


class StorageError(RsvpError):
    """Raised when the storage medium cannot be read or written."""
