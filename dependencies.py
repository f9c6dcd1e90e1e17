from fastapi import FastAPI, Query
import redis.asyncio as redis
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
import logging
import os
import pytz

from helpers.dates import parse_date

logger = logging.getLogger(__name__)

SCHEDULER_TIMEZONE = os.getenv("SCHEDULER_TIMEZONE", "Asia/Kolkata")

redis_client = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global redis_client
    conn_string = os.getenv("REDIS_CONN_STRING")
    if conn_string:
        redis_client = redis.from_url(conn_string)
    else:
        logger.info("REDIS_CONN_STRING not set, leaderboard caching disabled")

    if os.getenv("ENABLE_SCHEDULER", "1") == "1":
        from scheduler import start_scheduler
        start_scheduler()

    yield
    if redis_client:
        await redis_client.close()
        redis_client = None


async def get_redis_client():
    return redis_client


def local_today():
    return datetime.now(pytz.timezone(SCHEDULER_TIMEZONE)).date()


def get_today(today: Optional[str] = Query(None, description="Reference day, YYYY-MM-DD")):
    """Reference day for streak maths. Clients may pin it; otherwise the local calendar day."""
    if today:
        return parse_date(today)
    return local_today()
