"""Pydantic request/response schemas used by the API.

Incoming fields are all optional text so that missing or malformed
values reach the services, which report them in the tracker's own
`Missing` / `Error` shapes instead of a generic 422.
"""

from pydantic import BaseModel
from typing import List, Optional


class NewUserIn(BaseModel):
    """Payload for `/api/exercise/new-user`."""
    username: Optional[str] = None


class ExerciseIn(BaseModel):
    """Payload for `/api/exercise/add`."""
    userId: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[str] = None
    date: Optional[str] = None


class UserOut(BaseModel):
    username: str
    id: str


class ExerciseOut(BaseModel):
    """A freshly added entry, echoed back with its owner."""
    username: str
    id: str
    description: str
    duration: str
    date: str


class LogEntryOut(BaseModel):
    description: str
    duration: str
    date: str


class LogOut(BaseModel):
    """Filtered exercise log; `count` is the length of `log`."""
    username: str
    id: str
    count: int
    log: List[LogEntryOut]
