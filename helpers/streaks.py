import datetime
from typing import Iterable, Optional

from errors import InvalidArgumentError, InvalidDateError
from helpers.dates import DateLike, days_between, normalize_dates, parse_date, to_iso
from schemas.streak import StreakData

ONE_DAY = datetime.timedelta(days=1)


def longest_run(days) -> int:
    """Length of the longest run of consecutive calendar days."""
    longest = 0
    run = 0
    previous = None
    for day in sorted(days):
        if previous is not None and days_between(previous, day) == 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        previous = day
    return longest


def compute_streak(
    dates: Iterable[DateLike],
    today: DateLike,
    window_days: Optional[int] = None,
) -> StreakData:
    """Derive the consistency record for one user.

    ``today`` is always supplied by the caller. An inactive today does not
    break a streak that reached yesterday; it only counts as missed.
    ``window_days`` limits the span used for ``missed_days`` to the last N
    days ending today.
    """
    if window_days is not None and window_days < 1:
        raise InvalidArgumentError(f"window_days must be positive, got {window_days}")

    today = parse_date(today)
    days = normalize_dates(dates)

    future = sorted(d for d in days if d > today)
    if future:
        raise InvalidDateError(
            f"Activity date {to_iso(future[0])} is after {to_iso(today)}"
        )

    if not days:
        return StreakData()

    active_today = today in days

    current = 0
    cursor = today if active_today else today - ONE_DAY
    while cursor in days:
        current += 1
        cursor -= ONE_DAY

    span_start = min(days)
    if window_days is not None:
        span_start = max(span_start, today - datetime.timedelta(days=window_days - 1))
    observed = sum(1 for d in days if d >= span_start)
    missed = days_between(span_start, today) + 1 - observed

    return StreakData(
        current_streak=current,
        longest_streak=longest_run(days),
        total_active_days=len(days),
        active_today=active_today,
        missed_days=missed,
        dates=[to_iso(d) for d in sorted(days)],
    )
