"""Domain exceptions raised by services.

Each error carries the HTTP status it maps to and the JSON `content`
returned to the client. `content` defaults to the message itself, which
the API sends as a bare JSON string.
"""

from typing import Any, List, Optional


class TrackerError(Exception):
    """Base exception for the exercise tracker."""

    status_code: int = 500

    def __init__(self, message: str, content: Optional[Any] = None):
        self.message = message
        self.content = message if content is None else content
        super().__init__(message)


class ValidationError(TrackerError):
    """Bad input the caller can correct."""

    status_code = 400

    @classmethod
    def from_messages(cls, messages: List[str]) -> "ValidationError":
        return cls("; ".join(messages), content={"Error": list(messages)})


class MissingFieldError(ValidationError):
    """One or more required fields were not supplied."""

    def __init__(self, fields: List[str]):
        self.fields = list(fields)
        super().__init__(f"Missing: {', '.join(self.fields)}", content={"Missing": self.fields})


class NotFoundError(TrackerError):
    """No user matches the supplied identifier."""

    status_code = 404


class ConflictError(TrackerError):
    """A user with the requested username already exists."""

    status_code = 409
