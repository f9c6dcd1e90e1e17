"""Ranking, filtering and paging of leaderboard records.

Every function here is pure: inputs are left untouched and a new list is
returned, so the same snapshot can be ranked from several requests at once.
"""
import logging
import math
from typing import Iterable, List, Sequence

from errors import InvalidArgumentError
from schemas.leaderboard import (
    AppendResult,
    LeaderboardEntry,
    LeaderboardPage,
    LeaderboardRecord,
)

logger = logging.getLogger(__name__)

# Requested sort key -> record attribute. "rank" restores the canonical ranking.
SORT_FIELDS = {
    "rank": "total_solved",
    "totalSolved": "total_solved",
    "total_solved": "total_solved",
    "currentStreak": "current_streak",
    "current_streak": "current_streak",
    "penaltyAmount": "penalty_amount",
    "penalty_amount": "penalty_amount",
}
SORT_ORDERS = ("asc", "desc")


def filter_records(records: Iterable[LeaderboardRecord], query: str = "") -> List[LeaderboardRecord]:
    needle = (query or "").lower()
    if not needle:
        return list(records)
    return [r for r in records if needle in r.user_name.lower()]


def sort_records(
    records: Iterable[LeaderboardRecord],
    sort_key: str = "rank",
    sort_order: str = "asc",
) -> List[LeaderboardRecord]:
    if sort_order not in SORT_ORDERS:
        raise InvalidArgumentError(f"Unknown sort order {sort_order!r}")

    field = SORT_FIELDS.get(sort_key)
    if field is None:
        logger.warning("Unknown leaderboard sort key %r, using canonical ranking", sort_key)
        sort_key, sort_order, field = "rank", "asc", "total_solved"

    if sort_key == "rank":
        # Rank 1 first means highest total_solved first
        descending = sort_order == "asc"
    else:
        descending = sort_order == "desc"

    # Tie-break pass first; the stable primary pass keeps user_id ascending
    # among equal values even when reverse=True.
    ordered = sorted(records, key=lambda r: r.user_id)
    ordered.sort(key=lambda r: getattr(r, field), reverse=descending)
    return ordered


def assign_ranks(records: Iterable[LeaderboardRecord]) -> List[LeaderboardEntry]:
    return [
        LeaderboardEntry(rank=i + 1, **record.model_dump(exclude={"rank"}))
        for i, record in enumerate(records)
    ]


def build_view(
    records: Iterable[LeaderboardRecord],
    query: str = "",
    sort_key: str = "rank",
    sort_order: str = "asc",
) -> List[LeaderboardEntry]:
    """Filter, sort and rank. Ranks are positions within the filtered set."""
    return assign_ranks(sort_records(filter_records(records, query), sort_key, sort_order))


def _check_positive(name: str, value: int):
    if value is None or value < 1:
        raise InvalidArgumentError(f"{name} must be a positive integer, got {value}")


def total_pages(count: int, page_size: int) -> int:
    _check_positive("page_size", page_size)
    return max(1, math.ceil(count / page_size))


def page(view: Sequence[LeaderboardEntry], page_number: int, page_size: int) -> List[LeaderboardEntry]:
    _check_positive("page_number", page_number)
    _check_positive("page_size", page_size)
    start = (page_number - 1) * page_size
    return list(view[start:start + page_size])


def paginate(
    records: Iterable[LeaderboardRecord],
    query: str = "",
    sort_key: str = "rank",
    sort_order: str = "asc",
    page_number: int = 1,
    page_size: int = 10,
) -> LeaderboardPage:
    _check_positive("page_number", page_number)
    _check_positive("page_size", page_size)
    view = build_view(records, query, sort_key, sort_order)
    return LeaderboardPage(
        items=page(view, page_number, page_size),
        total_pages=total_pages(len(view), page_size),
    )


def append(
    existing: Sequence[LeaderboardRecord],
    next_batch: Sequence[LeaderboardRecord],
    requested_batch_size: int,
) -> AppendResult:
    """Merge one infinite-scroll batch into the loaded records.

    The first record seen for a user_id wins. A short batch means the source
    is exhausted; a full one may still be the last, so callers stop on the
    first empty fetch.
    """
    _check_positive("requested_batch_size", requested_batch_size)

    merged = list(existing)
    seen = {r.user_id for r in merged}
    for record in next_batch:
        if record.user_id in seen:
            continue
        seen.add(record.user_id)
        merged.append(record)

    return AppendResult(merged=merged, has_more=len(next_batch) == requested_batch_size)
