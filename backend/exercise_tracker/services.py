"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories
and validation. Services raise the exceptions from `errors` and leave
the translation into HTTP responses to the controllers.
"""

import logging
import re
import secrets
import string
from datetime import datetime
from typing import Optional
from sqlmodel import Session
from . import models, repositories
from .errors import ConflictError, MissingFieldError, NotFoundError, ValidationError
from .utils.dates import as_utc, format_date, is_date_only, try_parse_date, utc_now
from .utils.locks import KeyedLock

logger = logging.getLogger("exercise_tracker.services")

USER_ID_ALPHABET = string.ascii_letters + string.digits + "_-"
USER_ID_LENGTH = 9
MAX_DESCRIPTION_LENGTH = 48
DURATION_RE = re.compile(r"[0-9]+")

_registration_locks = KeyedLock()


def generate_user_id(length: int = USER_ID_LENGTH) -> str:
    """Return a short random URL-safe identifier."""
    return "".join(secrets.choice(USER_ID_ALPHABET) for _ in range(length))


class UserService:
    """Register users and hand out their identifiers."""
    def __init__(self, session: Session, locks: Optional[KeyedLock] = None):
        self.session = session
        self.user_repo = repositories.UserRepository(session)
        self.locks = locks if locks is not None else _registration_locks

    def register(self, username: Optional[str]) -> models.User:
        """Create a user with an empty log.

        Raises ValidationError for a blank username and ConflictError when
        the name is already registered. The duplicate check and the insert
        are serialised per username within this process only.
        """
        if not username or not username.strip():
            raise ValidationError("Please enter a valid username.")
        with self.locks.hold(username):
            if self.user_repo.get_by_username(username):
                logger.debug("username %r already registered", username)
                raise ConflictError("Username already taken...")
            user = models.User(username=username, user_id=self._new_user_id(), count=0)
            user = self.user_repo.create(user)
        logger.info("registered user %s as %s", user.username, user.user_id)
        return user

    def _new_user_id(self) -> str:
        user_id = generate_user_id()
        while self.user_repo.user_id_exists(user_id):
            user_id = generate_user_id()
        return user_id


class ExerciseService:
    """Append exercises to a user's log and query it back."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)
        self.exercise_repo = repositories.ExerciseRepository(session)

    def _get_user(self, user_id: Optional[str], message: str, content=None) -> models.User:
        user = self.user_repo.get_by_user_id(user_id) if user_id else None
        if not user:
            raise NotFoundError(message, content=content)
        return user

    def add(self, user_id: Optional[str], description: Optional[str], duration: Optional[str], date: Optional[str] = None) -> dict:
        """Validate and append one exercise, returning the response payload.

        Checks run in this order: the user must exist, then description and
        duration must both be present, then every format rule is evaluated
        and all failures are reported together.
        """
        user = self._get_user(user_id, "No user found...", content={"msg": "No user found..."})

        missing = []
        if not description:
            missing.append("Description")
        if not duration:
            missing.append("Duration")
        if missing:
            logger.debug("add for %s missing %s", user_id, missing)
            raise MissingFieldError(missing)

        has_date = date is not None and date.strip() != ""
        parsed_date = try_parse_date(date) if has_date else None
        problems = []
        if len(description) > MAX_DESCRIPTION_LENGTH:
            problems.append("Description is too long")
        if not DURATION_RE.fullmatch(duration):
            problems.append("Duration should be number only")
        if has_date and parsed_date is None:
            problems.append("Date entry is invalid")
        if problems:
            logger.debug("add for %s rejected: %s", user_id, problems)
            raise ValidationError.from_messages(problems)

        entry = self.exercise_repo.append(user, description, duration, parsed_date or utc_now())
        logger.info("user %s logged %r (count=%d)", user.user_id, entry.description, user.count)
        return {
            'username': user.username,
            'id': user.user_id,
            'description': entry.description,
            'duration': entry.duration,
            'date': format_date(entry.date),
        }

    def get_log(self, user_id: Optional[str], date_from: Optional[str] = None, date_to: Optional[str] = None, limit: Optional[str] = None) -> dict:
        """Return the user's log sorted by date, filtered and truncated.

        Entries strictly before `date_from` or strictly after `date_to` are
        dropped. A `date_to` given as a bare day covers that whole UTC day.
        `limit` is applied after filtering and only when it is a positive
        integer. The returned `count` is the size of the filtered log.
        """
        user = self._get_user(user_id, "No user with that ID is found.")
        lower = self._parse_bound("from", date_from)
        upper = self._parse_bound("to", date_to)

        entries = [(as_utc(e.date), e) for e in self.exercise_repo.list_for_user(user.id)]
        if lower is not None:
            entries = [(d, e) for d, e in entries if d >= lower]
        if upper is not None:
            if is_date_only(date_to):
                entries = [(d, e) for d, e in entries if d.date() <= upper.date()]
            else:
                entries = [(d, e) for d, e in entries if d <= upper]
        max_items = parse_limit(limit)
        if max_items:
            entries = entries[:max_items]

        log = [
            {'description': e.description, 'duration': e.duration, 'date': format_date(d)}
            for d, e in entries
        ]
        return {'username': user.username, 'id': user.user_id, 'count': len(log), 'log': log}

    @staticmethod
    def _parse_bound(name: str, value: Optional[str]) -> Optional[datetime]:
        if value is None or not value.strip():
            return None
        parsed = try_parse_date(value)
        if parsed is None:
            raise ValidationError(f"Invalid '{name}' date: {value}")
        return parsed


def parse_limit(value: Optional[str]) -> int:
    """Return `value` as a positive int, or 0 when it is absent or unusable."""
    try:
        n = int(str(value).strip()) if value is not None else 0
    except ValueError:
        return 0
    return n if n > 0 else 0
