import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_today
from helpers.records import get_user_or_404, record_activity, user_streak
from models import User
from schemas.streak import ActivityCreate, StreakData
from schemas.user import UserCreate, UserResponse

router = APIRouter(prefix="/user", tags=["User"])


@router.post("/", response_model=UserResponse, status_code=201)
def create_user(request: UserCreate, db: Session = Depends(get_db)):
    if request.email and db.query(User).filter(User.email == request.email).first():
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        name=request.name,
        email=request.email,
        picture=request.picture,
        leetcode_username=request.leetcode_username,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@router.get("/{public_id}", response_model=UserResponse)
def get_user(public_id: str, db: Session = Depends(get_db)):
    return get_user_or_404(db, public_id)


@router.get("/{public_id}/streak", response_model=StreakData)
def get_streak(
    public_id: str,
    window_days: Optional[int] = Query(None),
    today: datetime.date = Depends(get_today),
    db: Session = Depends(get_db),
):
    user = get_user_or_404(db, public_id)
    return user_streak(db, user, today, window_days)


@router.post("/{public_id}/activity", response_model=StreakData)
def log_activity(
    public_id: str,
    request: ActivityCreate,
    today: datetime.date = Depends(get_today),
    db: Session = Depends(get_db),
):
    user = get_user_or_404(db, public_id)
    return record_activity(db, user, request.date, today)
