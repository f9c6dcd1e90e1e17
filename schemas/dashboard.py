from pydantic import BaseModel
from typing import List, Literal


class DashboardStats(BaseModel):
    today_status: Literal["completed", "failed", "pending"] = "pending"
    today_solved: int = 0
    today_target: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    total_penalties: float = 0.0
    active_challenges: int = 0
    total_solved: int = 0


class ActivityPoint(BaseModel):
    date: str
    count: int


class ChartPoint(BaseModel):
    date: str
    solved: int
    target: int


class HeatmapResponse(BaseModel):
    points: List[ActivityPoint]


class ChartResponse(BaseModel):
    points: List[ChartPoint]
