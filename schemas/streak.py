from pydantic import BaseModel
from typing import List


class StreakData(BaseModel):
    current_streak: int = 0
    longest_streak: int = 0
    total_active_days: int = 0
    active_today: bool = False
    missed_days: int = 0
    dates: List[str] = []

    class Config:
        frozen = True


class ActivityCreate(BaseModel):
    date: str
