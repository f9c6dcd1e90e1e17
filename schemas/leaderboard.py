from pydantic import BaseModel
from typing import List, Optional


class LeaderboardRecord(BaseModel):
    user_id: str
    user_name: str
    avatar: Optional[str] = None
    total_solved: int = 0
    current_streak: int = 0
    missed_days: int = 0
    penalty_amount: float = 0.0

    class Config:
        frozen = True


class LeaderboardEntry(LeaderboardRecord):
    rank: int


class LeaderboardPage(BaseModel):
    items: List[LeaderboardEntry]
    total_pages: int


class LeaderboardBatch(BaseModel):
    records: List[LeaderboardRecord]
    offset: int
    limit: int


class AppendResult(BaseModel):
    merged: List[LeaderboardRecord]
    has_more: bool
