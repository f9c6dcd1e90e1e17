import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_today
from helpers.progress import activity_heatmap, dashboard_stats, submission_chart
from helpers.records import get_user_or_404, load_challenge_snapshots, member_progress
from schemas.dashboard import ChartResponse, DashboardStats, HeatmapResponse

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/{public_id}/overview", response_model=DashboardStats)
def get_overview(
    public_id: str,
    today: datetime.date = Depends(get_today),
    db: Session = Depends(get_db),
):
    user = get_user_or_404(db, public_id)
    challenges = load_challenge_snapshots(db, user)
    return dashboard_stats(user.public_id, challenges, today)


@router.get("/{public_id}/heatmap", response_model=HeatmapResponse)
def get_heatmap(
    public_id: str,
    days: int = Query(365, le=366),
    today: datetime.date = Depends(get_today),
    db: Session = Depends(get_db),
):
    user = get_user_or_404(db, public_id)
    progress = member_progress(load_challenge_snapshots(db, user), user.public_id)
    return HeatmapResponse(points=activity_heatmap(progress, today, days))


@router.get("/{public_id}/chart", response_model=ChartResponse)
def get_submission_chart(
    public_id: str,
    days: int = Query(30, le=90),
    today: datetime.date = Depends(get_today),
    db: Session = Depends(get_db),
):
    user = get_user_or_404(db, public_id)
    progress = member_progress(load_challenge_snapshots(db, user), user.public_id)
    return ChartResponse(points=submission_chart(progress, today, days))
