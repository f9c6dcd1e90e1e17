import datetime
from typing import Iterable, Iterator, Set, Union

from errors import ParseError

DateLike = Union[str, datetime.date, datetime.datetime]


def parse_date(value: DateLike) -> datetime.date:
    """Normalize an ISO string, date or datetime to a calendar day."""
    # datetime is a subclass of date, so check it first
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not isinstance(value, str):
        raise ParseError(f"Expected an ISO date, got {type(value).__name__}")

    text = value.strip()
    try:
        if len(text) == 10:
            return datetime.date.fromisoformat(text)
        return datetime.datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError as e:
        raise ParseError(f"Malformed date {value!r}") from e


def to_iso(day: datetime.date) -> str:
    return day.isoformat()


def days_between(start: datetime.date, end: datetime.date) -> int:
    """Whole calendar days from start to end (negative if end is earlier)."""
    return (end - start).days


def normalize_dates(values: Iterable[DateLike]) -> Set[datetime.date]:
    return {parse_date(v) for v in values}


def day_range(start: datetime.date, end: datetime.date) -> Iterator[datetime.date]:
    """Every day from start to end, both inclusive."""
    for offset in range(days_between(start, end) + 1):
        yield start + datetime.timedelta(days=offset)
