from database import Base
from sqlalchemy import (
    CHAR,
    DECIMAL,
    Column,
    Date,
    Integer,
    DateTime,
    VARCHAR,
    TEXT,
    UniqueConstraint,
)
from sqlalchemy.sql import func
import uuid


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    public_id = Column(
        CHAR(36), unique=True, nullable=False, default=lambda: str(uuid.uuid4())
    )
    name = Column(VARCHAR(255), nullable=True)
    email = Column(VARCHAR(100), unique=True, nullable=True)
    picture = Column(TEXT, nullable=True)
    leetcode_username = Column(VARCHAR(100), nullable=True)
    created_at = Column(DateTime, server_default=func.current_timestamp())


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, unique=True, nullable=False, index=True)

    # Cached result of the last recomputation, never edited directly
    current_streak = Column(Integer, default=0, nullable=False)
    longest_streak = Column(Integer, default=0, nullable=False)
    last_updated = Column(DateTime, nullable=True)


class ActivityDate(Base):
    __tablename__ = "activity_dates"
    __table_args__ = (UniqueConstraint("user_id", "activity_date"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    activity_date = Column(Date, nullable=False)


class Challenge(Base):
    __tablename__ = "challenges"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(VARCHAR(100), nullable=False)
    description = Column(TEXT, nullable=True)
    daily_target = Column(Integer, default=1, nullable=False)
    difficulty = Column(VARCHAR(10), default="any", nullable=False)  # easy, medium, hard, any
    penalty_amount = Column(DECIMAL(12, 2), default=0.00, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    created_by = Column(Integer, nullable=False, index=True)
    is_active = Column(Integer, default=1, nullable=False)  # 0 = No, 1 = Yes
    created_at = Column(DateTime, server_default=func.current_timestamp())


class ChallengeMember(Base):
    __tablename__ = "challenge_members"
    __table_args__ = (UniqueConstraint("challenge_id", "user_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    challenge_id = Column(Integer, nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    status = Column(VARCHAR(20), default="pending", nullable=False)  # completed, failed, pending
    streak = Column(Integer, default=0, nullable=False)
    total_penalty = Column(DECIMAL(12, 2), default=0.00, nullable=False)
    joined_at = Column(Date, nullable=True)


class DailyProgress(Base):
    __tablename__ = "daily_progress"
    __table_args__ = (UniqueConstraint("member_id", "progress_date"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(Integer, nullable=False, index=True)
    progress_date = Column(Date, nullable=False)
    solved = Column(Integer, default=0, nullable=False)
    target = Column(Integer, default=1, nullable=False)
    status = Column(VARCHAR(20), default="pending", nullable=False)
