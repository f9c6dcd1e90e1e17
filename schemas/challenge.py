from pydantic import BaseModel, Field, model_validator
from typing import List, Literal, Optional
from datetime import date

ProgressStatus = Literal["completed", "failed", "pending"]


class DailyProgressItem(BaseModel):
    date: str  # YYYY-MM-DD
    solved: int = Field(0, ge=0)
    target: int = Field(1, ge=0)
    status: ProgressStatus = "pending"


class ChallengeMemberSnapshot(BaseModel):
    user_id: str
    user_name: str
    avatar: Optional[str] = None
    status: ProgressStatus = "pending"
    streak: int = 0
    total_penalty: float = 0.0
    daily_progress: List[DailyProgressItem] = []


class ChallengeSnapshot(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    daily_target: int
    difficulty: str
    penalty_amount: float
    start_date: date
    end_date: date
    created_by: str
    is_active: bool = True
    members: List[ChallengeMemberSnapshot] = []


class ChallengeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    daily_target: int = Field(2, ge=1)
    difficulty: Literal["easy", "medium", "hard", "any"] = "any"
    penalty_amount: float = Field(5, ge=0)
    start_date: date
    end_date: date
    created_by: str

    @model_validator(mode="after")
    def check_date_order(self):
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


class ChallengeJoin(BaseModel):
    user_id: str


class ProgressUpdate(BaseModel):
    user_id: str
    date: str
    solved: int = Field(..., ge=0)


class ChallengeListResponse(BaseModel):
    data: List[ChallengeSnapshot]
    page: int
    total_pages: int
    has_more: bool
