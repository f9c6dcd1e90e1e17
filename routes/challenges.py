import datetime
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import redis.asyncio as redis

from database import get_db
from dependencies import get_redis_client, get_today
from errors import InvalidArgumentError, InvalidDateError
from helpers.dates import parse_date, to_iso
from helpers.leaderboard import build_view, page, total_pages
from helpers.progress import leaderboard_record
from helpers.records import (
    challenge_snapshot,
    get_user_or_404,
    load_challenge_snapshots,
    record_activity,
    retract_activity,
    settle_member,
)
from models import Challenge, ChallengeMember, DailyProgress
from routes.leaderboard import invalidate_leaderboard_cache
from schemas.challenge import (
    ChallengeCreate,
    ChallengeJoin,
    ChallengeListResponse,
    ChallengeSnapshot,
    ProgressUpdate,
)
from schemas.leaderboard import LeaderboardEntry

router = APIRouter(prefix="/challenges", tags=["Challenges"])


def get_challenge_or_404(db: Session, challenge_id: int) -> Challenge:
    challenge = db.query(Challenge).filter(Challenge.id == challenge_id).first()
    if not challenge:
        raise HTTPException(status_code=404, detail="Challenge not found")
    return challenge


def get_member_or_404(db: Session, challenge: Challenge, user) -> ChallengeMember:
    member = db.query(ChallengeMember).filter(
        ChallengeMember.challenge_id == challenge.id,
        ChallengeMember.user_id == user.id,
    ).first()
    if not member:
        raise HTTPException(status_code=404, detail="User is not a member of this challenge")
    return member


@router.post("/", response_model=ChallengeSnapshot, status_code=201)
def create_challenge(request: ChallengeCreate, db: Session = Depends(get_db)):
    creator = get_user_or_404(db, request.created_by)

    challenge = Challenge(
        name=request.name,
        description=request.description or f"{request.name} - Solve {request.daily_target} problem(s) daily",
        daily_target=request.daily_target,
        difficulty=request.difficulty,
        penalty_amount=Decimal(str(request.penalty_amount)),
        start_date=request.start_date,
        end_date=request.end_date,
        created_by=creator.id,
        is_active=1,
    )
    db.add(challenge)
    db.flush()  # ensures challenge.id is available

    # The creator always takes part
    db.add(ChallengeMember(challenge_id=challenge.id, user_id=creator.id, joined_at=request.start_date))
    db.commit()
    return challenge_snapshot(db, challenge)


@router.get("/", response_model=ChallengeListResponse)
def list_challenges(
    page_number: int = Query(1, alias="page"),
    limit: int = 6,
    db: Session = Depends(get_db),
):
    snapshots = load_challenge_snapshots(db)
    data = page(snapshots, page_number, limit)
    return ChallengeListResponse(
        data=data,
        page=page_number,
        total_pages=total_pages(len(snapshots), limit),
        has_more=len(data) == limit,
    )


@router.get("/{challenge_id}", response_model=ChallengeSnapshot)
def get_challenge(challenge_id: int, db: Session = Depends(get_db)):
    return challenge_snapshot(db, get_challenge_or_404(db, challenge_id))


@router.post("/{challenge_id}/join", response_model=ChallengeSnapshot)
async def join_challenge(
    challenge_id: int,
    request: ChallengeJoin,
    today: datetime.date = Depends(get_today),
    db: Session = Depends(get_db),
    redis_conn: redis.Redis = Depends(get_redis_client),
):
    challenge = get_challenge_or_404(db, challenge_id)
    user = get_user_or_404(db, request.user_id)

    if not challenge.is_active:
        raise HTTPException(status_code=400, detail="Challenge is no longer active")

    exists = db.query(ChallengeMember).filter(
        ChallengeMember.challenge_id == challenge.id,
        ChallengeMember.user_id == user.id,
    ).first()
    if not exists:
        db.add(ChallengeMember(challenge_id=challenge.id, user_id=user.id, joined_at=today))
        db.commit()
        await invalidate_leaderboard_cache(redis_conn)

    return challenge_snapshot(db, challenge)


@router.post("/{challenge_id}/progress", response_model=ChallengeSnapshot)
async def update_progress(
    challenge_id: int,
    request: ProgressUpdate,
    today: datetime.date = Depends(get_today),
    db: Session = Depends(get_db),
    redis_conn: redis.Redis = Depends(get_redis_client),
):
    challenge = get_challenge_or_404(db, challenge_id)
    user = get_user_or_404(db, request.user_id)
    member = get_member_or_404(db, challenge, user)

    day = parse_date(request.date)
    if day > today:
        raise InvalidDateError(f"Progress date {to_iso(day)} is after {to_iso(today)}")
    if not challenge.start_date <= day <= challenge.end_date:
        raise InvalidArgumentError(
            f"Progress date {to_iso(day)} is outside the challenge "
            f"({to_iso(challenge.start_date)} to {to_iso(challenge.end_date)})"
        )

    entry = db.query(DailyProgress).filter(
        DailyProgress.member_id == member.id,
        DailyProgress.progress_date == day,
    ).first()
    if not entry:
        entry = DailyProgress(member_id=member.id, progress_date=day, target=challenge.daily_target)
        db.add(entry)
    entry.solved = request.solved
    db.flush()
    settle_member(db, challenge, member, today)

    if request.solved >= 1:
        record_activity(db, user, day, today)  # commits
    else:
        retract_activity(db, user, day, today)
        db.commit()

    await invalidate_leaderboard_cache(redis_conn)
    return challenge_snapshot(db, challenge)


@router.get("/{challenge_id}/leaderboard", response_model=List[LeaderboardEntry])
def get_challenge_leaderboard(
    challenge_id: int,
    q: str = "",
    sort_key: str = "rank",
    sort_order: str = "asc",
    db: Session = Depends(get_db),
):
    snapshot = challenge_snapshot(db, get_challenge_or_404(db, challenge_id))
    records = [leaderboard_record(m) for m in snapshot.members]
    return build_view(records, q, sort_key, sort_order)
