"""SQLModel data models.

A `User` owns an ordered log of `Exercise` rows. Exercises have no
identity outside their owner; the autoincrement `id` only records
insertion order, which is the tie-break when two entries share a date.
"""

from typing import List, Optional
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import DateTime
from datetime import datetime


class User(SQLModel, table=True):
    """A registered user.

    Fields:
    - `username`: display name, checked for duplicates at registration
    - `user_id`: short opaque identifier handed out to clients
    - `count`: number of exercises logged so far
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, nullable=False)
    user_id: str = Field(index=True, nullable=False, unique=True)
    count: int = Field(default=0, nullable=False)
    log: List['Exercise'] = Relationship(back_populates='owner')


class Exercise(SQLModel, table=True):
    """A single logged activity.

    `duration` is kept as the digit string the client sent and `date` is
    always written as an aware UTC datetime.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key='user.id', index=True)
    description: str
    duration: str
    date: datetime = Field(sa_type=DateTime(timezone=True), index=True)
    owner: Optional[User] = Relationship(back_populates='log')
