"""Date parsing and display helpers.

Dates are handled as timezone-aware UTC datetimes. Naive inputs are
read as UTC, and values coming back from SQLite (which drops the
offset) are re-tagged with `as_utc` before they are compared or shown.
"""

from datetime import datetime, timezone
from typing import Optional

HUMAN_FORMATS = (
    "%b %d %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%a %b %d %Y",
    "%A %B %d %Y",
    "%d %b %Y",
    "%d %B %Y",
    "%m/%d/%Y",
    "%Y/%m/%d",
)


def as_utc(value: datetime) -> datetime:
    """Return `value` as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_date(text: str) -> datetime:
    """Parse `text` into an aware UTC datetime or raise ValueError.

    ISO 8601 dates and datetimes are tried first (a trailing `Z` is read
    as UTC), then a handful of human formats such as `Jan 1 2024` or
    `01/31/2024`. Offsets that push the instant past the representable
    range are rejected like any other invalid date.
    """
    if not isinstance(text, str) or not text.strip():
        raise ValueError("empty date")
    value = text.strip()
    iso = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    try:
        parsed = datetime.fromisoformat(iso)
    except ValueError:
        parsed = None
    if parsed is None:
        for fmt in HUMAN_FORMATS:
            try:
                parsed = datetime.strptime(value, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        raise ValueError(f"unrecognised date: {text!r}")
    try:
        return as_utc(parsed)
    except OverflowError as exc:
        raise ValueError(f"date out of range: {text!r}") from exc


def try_parse_date(text: Optional[str]) -> Optional[datetime]:
    """Return the parsed date, or None when `text` is not a valid date."""
    try:
        return parse_date(text)
    except (ValueError, OverflowError):
        return None


def is_date_only(text: str) -> bool:
    """True when `text` names a calendar day without a time of day."""
    return ":" not in text


def ordinal_suffix(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def format_date(value: datetime) -> str:
    """Render a date like `Jan 1st 2024 Monday` (UTC calendar)."""
    value = as_utc(value)
    return f"{value:%b} {value.day}{ordinal_suffix(value.day)} {value:%Y} {value:%A}"
