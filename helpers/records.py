import datetime
import logging
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from helpers.dates import DateLike, day_range, parse_date, to_iso
from helpers.leaderboard import sort_records
from helpers.progress import active_dates, global_records
from helpers.streaks import compute_streak
from models import ActivityDate, ActivityLog, Challenge, ChallengeMember, DailyProgress, User
from schemas.challenge import ChallengeMemberSnapshot, ChallengeSnapshot, DailyProgressItem
from schemas.leaderboard import LeaderboardRecord
from schemas.streak import StreakData

logger = logging.getLogger(__name__)


def display_name(user: User) -> str:
    if not user.name:
        return "User"
    parts = user.name.split()
    return f"{parts[0]} {parts[-1]}" if len(parts) > 2 else user.name


def get_user_or_404(db: Session, public_id: str) -> User:
    user = db.query(User).filter(User.public_id == public_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# Activity log ---------------------------------------------------------------

def load_activity_dates(db: Session, user: User) -> List[datetime.date]:
    rows = db.query(ActivityDate.activity_date).filter(ActivityDate.user_id == user.id).all()
    return [r[0] for r in rows]


def user_streak(db: Session, user: User, today: DateLike, window_days: Optional[int] = None) -> StreakData:
    return compute_streak(load_activity_dates(db, user), today, window_days)


def refresh_activity_log(db: Session, user: User, today: DateLike) -> StreakData:
    """Recompute the cached streak fields of a user's log. Caller commits."""
    streak = user_streak(db, user, today)

    log = db.query(ActivityLog).filter(ActivityLog.user_id == user.id).first()
    if not log:
        log = ActivityLog(user_id=user.id)
        db.add(log)

    log.current_streak = streak.current_streak
    log.longest_streak = streak.longest_streak
    log.last_updated = datetime.datetime.utcnow()
    return streak


def record_activity(db: Session, user: User, day: DateLike, today: DateLike) -> StreakData:
    """Add a day to the user's log and recompute. Re-adding a day is a no-op."""
    day = parse_date(day)
    today = parse_date(today)

    # Validate before touching the session
    dates = set(load_activity_dates(db, user))
    dates.add(day)
    compute_streak(dates, today)

    exists = db.query(ActivityDate).filter(
        ActivityDate.user_id == user.id,
        ActivityDate.activity_date == day,
    ).first()
    if not exists:
        db.add(ActivityDate(user_id=user.id, activity_date=day))
        db.flush()

    streak = refresh_activity_log(db, user, today)
    db.commit()
    return streak


# Challenges -----------------------------------------------------------------

def challenge_snapshot(db: Session, challenge: Challenge) -> ChallengeSnapshot:
    members = db.query(ChallengeMember).filter(ChallengeMember.challenge_id == challenge.id).all()
    user_ids = {m.user_id for m in members} | {challenge.created_by}
    users: Dict[int, User] = {
        u.id: u for u in db.query(User).filter(User.id.in_(list(user_ids))).all()
    }

    progress_by_member: Dict[int, List[DailyProgress]] = {}
    if members:
        rows = (
            db.query(DailyProgress)
            .filter(DailyProgress.member_id.in_([m.id for m in members]))
            .order_by(DailyProgress.progress_date)
            .all()
        )
        for row in rows:
            progress_by_member.setdefault(row.member_id, []).append(row)

    snapshots = []
    for member in members:
        user = users.get(member.user_id)
        if not user:
            logger.warning("Challenge %s has member %s without a user row", challenge.id, member.user_id)
            continue
        snapshots.append(ChallengeMemberSnapshot(
            user_id=user.public_id,
            user_name=display_name(user),
            avatar=user.picture,
            status=member.status,
            streak=member.streak,
            total_penalty=float(member.total_penalty or 0),
            daily_progress=[
                DailyProgressItem(
                    date=to_iso(p.progress_date),
                    solved=p.solved,
                    target=p.target,
                    status=p.status,
                )
                for p in progress_by_member.get(member.id, [])
            ],
        ))

    creator = users.get(challenge.created_by)
    return ChallengeSnapshot(
        id=challenge.id,
        name=challenge.name,
        description=challenge.description,
        daily_target=challenge.daily_target,
        difficulty=challenge.difficulty,
        penalty_amount=float(challenge.penalty_amount or 0),
        start_date=challenge.start_date,
        end_date=challenge.end_date,
        created_by=creator.public_id if creator else "",
        is_active=bool(challenge.is_active),
        members=snapshots,
    )


def load_challenge_snapshots(db: Session, user: Optional[User] = None) -> List[ChallengeSnapshot]:
    query = db.query(Challenge)
    if user is not None:
        member_of = db.query(ChallengeMember.challenge_id).filter(ChallengeMember.user_id == user.id)
        query = query.filter(Challenge.id.in_(member_of))
    return [challenge_snapshot(db, c) for c in query.order_by(Challenge.id).all()]


def member_progress(challenges: List[ChallengeSnapshot], public_id: str) -> List[DailyProgressItem]:
    return [
        p
        for c in challenges
        for m in c.members
        if m.user_id == public_id
        for p in m.daily_progress
    ]


# Leaderboard ----------------------------------------------------------------

def load_leaderboard_records(db: Session) -> List[LeaderboardRecord]:
    members = [m for c in load_challenge_snapshots(db) for m in c.members]
    return global_records(members)


def load_leaderboard_batch(db: Session, offset: int, limit: int) -> List[LeaderboardRecord]:
    """One slice of the canonical ranking, for incremental loading."""
    ordered = sort_records(load_leaderboard_records(db))
    return ordered[offset:offset + limit]


def retract_activity(db: Session, user: User, day: DateLike, today: DateLike) -> StreakData:
    """Drop a day from the log once no membership has a solve on it. Caller commits."""
    day = parse_date(day)
    still_active = (
        db.query(DailyProgress.id)
        .join(ChallengeMember, ChallengeMember.id == DailyProgress.member_id)
        .filter(
            ChallengeMember.user_id == user.id,
            DailyProgress.progress_date == day,
            DailyProgress.solved >= 1,
        )
        .first()
    )
    if not still_active:
        db.query(ActivityDate).filter(
            ActivityDate.user_id == user.id,
            ActivityDate.activity_date == day,
        ).delete(synchronize_session=False)
        db.flush()
    return refresh_activity_log(db, user, today)


# Member settlement ------------------------------------------------------------

def progress_status(solved: int, target: int, day: datetime.date, today: datetime.date) -> str:
    if solved >= target:
        return "completed"
    # The current day stays open until it has fully elapsed
    return "pending" if day == today else "failed"


def settle_member(db: Session, challenge: Challenge, member: ChallengeMember, today: DateLike):
    """Bring a member's derived fields up to date for the reference day. Caller commits.

    Elapsed challenge days without an entry are recorded as failed, open
    entries are re-evaluated, and streak, penalty and status are rederived
    from the full history.
    """
    today = parse_date(today)
    rows = db.query(DailyProgress).filter(DailyProgress.member_id == member.id).all()
    by_day = {r.progress_date: r for r in rows}

    first_day = max(challenge.start_date, member.joined_at or challenge.start_date)
    last_day = min(challenge.end_date, today - datetime.timedelta(days=1))
    for day in day_range(first_day, last_day):
        if day not in by_day:
            row = DailyProgress(member_id=member.id, progress_date=day, solved=0, target=challenge.daily_target)
            db.add(row)
            by_day[day] = row

    for day, row in by_day.items():
        if day <= today:
            row.status = progress_status(row.solved, row.target, day, today)
    db.flush()

    elapsed = [
        DailyProgressItem(date=to_iso(day), solved=r.solved, target=r.target, status=r.status)
        for day, r in by_day.items()
        if day <= today
    ]
    failed_days = sum(1 for p in elapsed if p.status == "failed")
    member.streak = compute_streak(active_dates(elapsed), today).current_streak
    member.total_penalty = Decimal(failed_days) * (challenge.penalty_amount or Decimal("0"))
    member.status = by_day[today].status if today in by_day else "pending"
    return member


def settle_all_members(db: Session, today: DateLike) -> int:
    """Settle every membership of every challenge. Caller commits."""
    challenges = {c.id: c for c in db.query(Challenge).all()}
    settled = 0
    for member in db.query(ChallengeMember).all():
        challenge = challenges.get(member.challenge_id)
        if not challenge:
            logger.warning("Member %s points at missing challenge %s", member.id, member.challenge_id)
            continue
        settle_member(db, challenge, member, today)
        settled += 1
    return settled
