import datetime
from typing import Dict, Iterable, List, Set

from errors import InvalidArgumentError
from helpers.dates import DateLike, day_range, parse_date, to_iso
from helpers.streaks import compute_streak
from schemas.challenge import ChallengeMemberSnapshot, ChallengeSnapshot, DailyProgressItem
from schemas.dashboard import ActivityPoint, ChartPoint, DashboardStats
from schemas.leaderboard import LeaderboardRecord


def active_dates(daily_progress: Iterable[DailyProgressItem]) -> Set[datetime.date]:
    """Days with at least one solve. Meeting the target is not required."""
    return {parse_date(p.date) for p in daily_progress if p.solved >= 1}


def leaderboard_record(member: ChallengeMemberSnapshot) -> LeaderboardRecord:
    return LeaderboardRecord(
        user_id=member.user_id,
        user_name=member.user_name,
        avatar=member.avatar,
        total_solved=sum(p.solved for p in member.daily_progress),
        current_streak=member.streak,
        missed_days=sum(1 for p in member.daily_progress if p.status == "failed"),
        penalty_amount=member.total_penalty,
    )


def global_records(members: Iterable[ChallengeMemberSnapshot]) -> List[LeaderboardRecord]:
    """Fold per-challenge memberships into one record per user.

    Totals are summed, the streak is the best one across challenges, and the
    name/avatar of the first membership seen is kept.
    """
    merged: Dict[str, LeaderboardRecord] = {}
    for member in members:
        record = leaderboard_record(member)
        previous = merged.get(record.user_id)
        if previous is None:
            merged[record.user_id] = record
            continue
        merged[record.user_id] = previous.model_copy(
            update={
                "total_solved": previous.total_solved + record.total_solved,
                "current_streak": max(previous.current_streak, record.current_streak),
                "missed_days": previous.missed_days + record.missed_days,
                "penalty_amount": previous.penalty_amount + record.penalty_amount,
            }
        )
    return list(merged.values())


def _memberships(user_id: str, challenges: Iterable[ChallengeSnapshot]):
    for challenge in challenges:
        for member in challenge.members:
            if member.user_id == user_id:
                yield challenge, member


def dashboard_stats(
    user_id: str,
    challenges: Iterable[ChallengeSnapshot],
    today: DateLike,
) -> DashboardStats:
    today = parse_date(today)
    memberships = list(_memberships(user_id, challenges))

    dates: Set[datetime.date] = set()
    today_entries = []
    for challenge, member in memberships:
        dates |= active_dates(member.daily_progress)
        if not challenge.is_active:
            continue
        today_entries.extend(
            p for p in member.daily_progress if parse_date(p.date) == today
        )

    if any(p.status == "failed" for p in today_entries):
        today_status = "failed"
    elif today_entries and all(p.solved >= p.target for p in today_entries):
        today_status = "completed"
    else:
        today_status = "pending"

    streak = compute_streak(dates, today)
    return DashboardStats(
        today_status=today_status,
        today_solved=sum(p.solved for p in today_entries),
        today_target=sum(p.target for p in today_entries),
        current_streak=streak.current_streak,
        longest_streak=streak.longest_streak,
        total_penalties=sum(m.total_penalty for _, m in memberships),
        active_challenges=sum(1 for c, _ in memberships if c.is_active),
        total_solved=sum(p.solved for _, m in memberships for p in m.daily_progress),
    )


def _series_start(today: datetime.date, days: int) -> datetime.date:
    if days < 1:
        raise InvalidArgumentError(f"days must be positive, got {days}")
    return today - datetime.timedelta(days=days - 1)


def _daily_totals(progress: Iterable[DailyProgressItem]):
    solved: Dict[datetime.date, int] = {}
    target: Dict[datetime.date, int] = {}
    for p in progress:
        day = parse_date(p.date)
        solved[day] = solved.get(day, 0) + p.solved
        target[day] = target.get(day, 0) + p.target
    return solved, target


def activity_heatmap(
    progress: Iterable[DailyProgressItem],
    today: DateLike,
    days: int = 365,
) -> List[ActivityPoint]:
    today = parse_date(today)
    solved, _ = _daily_totals(progress)
    start = _series_start(today, days)
    return [ActivityPoint(date=to_iso(d), count=solved.get(d, 0)) for d in day_range(start, today)]


def submission_chart(
    progress: Iterable[DailyProgressItem],
    today: DateLike,
    days: int = 30,
) -> List[ChartPoint]:
    today = parse_date(today)
    solved, target = _daily_totals(progress)
    start = _series_start(today, days)
    return [
        ChartPoint(date=to_iso(d), solved=solved.get(d, 0), target=target.get(d, 0))
        for d in day_range(start, today)
    ]
