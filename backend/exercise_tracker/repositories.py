"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate. Repositories
return SQLModel objects and perform commits/refreshes where appropriate.
"""

from datetime import datetime
from typing import List, Optional
from sqlmodel import Session, select
from sqlalchemy import update
from . import models


class UserRepository:
    """CRUD operations for `User` objects."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, user: models.User) -> models.User:
        """Persist a new user and return the managed instance."""
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def get_by_username(self, username: str) -> Optional[models.User]:
        """Return a `User` by username or `None` if not found."""
        stmt = select(models.User).where(models.User.username == username)
        return self.session.exec(stmt).first()

    def get_by_user_id(self, user_id: str) -> Optional[models.User]:
        """Return a `User` by its public identifier or `None`."""
        stmt = select(models.User).where(models.User.user_id == user_id)
        return self.session.exec(stmt).first()

    def user_id_exists(self, user_id: str) -> bool:
        stmt = select(models.User.id).where(models.User.user_id == user_id)
        return self.session.exec(stmt).first() is not None


class ExerciseRepository:
    """Append and list the exercise log of a user."""
    def __init__(self, session: Session):
        self.session = session

    def append(self, user: models.User, description: str, duration: str, date: datetime) -> models.Exercise:
        """Append an entry and bump the owner's count in one transaction.

        The increment is issued as `count = count + 1` in SQL so concurrent
        appends for the same user cannot overwrite each other's count.
        """
        entry = models.Exercise(owner_id=user.id, description=description, duration=duration, date=date)
        self.session.add(entry)
        self.session.execute(
            update(models.User)
            .where(models.User.id == user.id)
            .values(count=models.User.count + 1)
        )
        self.session.commit()
        self.session.refresh(entry)
        self.session.refresh(user)
        return entry

    def list_for_user(self, owner_id: int) -> List[models.Exercise]:
        """Return all entries of a user, oldest date first.

        Entries sharing a date keep their insertion order.
        """
        stmt = (
            select(models.Exercise)
            .where(models.Exercise.owner_id == owner_id)
            .order_by(models.Exercise.date, models.Exercise.id)
        )
        return self.session.exec(stmt).all()
