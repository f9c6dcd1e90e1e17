import json
import logging
import os
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import redis.asyncio as redis

from database import get_db
from dependencies import get_redis_client
from helpers.fallback import generate_sample_leaderboard
from helpers.leaderboard import paginate, sort_records
from helpers.records import load_leaderboard_batch, load_leaderboard_records
from schemas.leaderboard import LeaderboardBatch, LeaderboardPage, LeaderboardRecord

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leaderboard", tags=["Leaderboard"])

CACHE_KEY = "leaderboard:records"
CACHE_TTL = int(os.getenv("LEADERBOARD_CACHE_TTL", "300"))
DEFAULT_PAGE_SIZE = int(os.getenv("LEADERBOARD_PAGE_SIZE", "10"))


async def get_leaderboard_records(db: Session, redis_conn: redis.Redis = None) -> List[LeaderboardRecord]:
    if redis_conn:
        cached = await redis_conn.get(CACHE_KEY)
        if cached:
            return [LeaderboardRecord(**r) for r in json.loads(cached)]

    try:
        records = load_leaderboard_records(db)
    except SQLAlchemyError as e:
        logger.error("Could not load leaderboard, serving sample data: %s", e)
        return generate_sample_leaderboard()

    if redis_conn:
        await redis_conn.setex(CACHE_KEY, CACHE_TTL, json.dumps([r.model_dump() for r in records]))
    return records


async def invalidate_leaderboard_cache(redis_conn: redis.Redis = None):
    if redis_conn:
        await redis_conn.delete(CACHE_KEY)


@router.get("/", response_model=LeaderboardPage)
async def get_leaderboard(
    q: str = "",
    sort_key: str = "rank",
    sort_order: str = "asc",
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    db: Session = Depends(get_db),
    redis_conn: redis.Redis = Depends(get_redis_client),
):
    records = await get_leaderboard_records(db, redis_conn)
    return paginate(records, q, sort_key, sort_order, page, page_size)


@router.get("/batch", response_model=LeaderboardBatch)
def get_leaderboard_batch(
    offset: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    db: Session = Depends(get_db),
):
    try:
        records = load_leaderboard_batch(db, offset, limit)
    except SQLAlchemyError as e:
        logger.error("Could not load leaderboard batch, serving sample data: %s", e)
        records = sort_records(generate_sample_leaderboard())[offset:offset + limit]
    return LeaderboardBatch(records=records, offset=offset, limit=limit)
