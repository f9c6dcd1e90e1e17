import schedule
import time
import logging
import os
from threading import Thread
from datetime import datetime
from sqlalchemy.orm import Session
import pytz
import redis

from database import SessionLocal
from dependencies import SCHEDULER_TIMEZONE
from helpers.records import refresh_activity_log, settle_all_members
from errors import LeetStreakError
from models import User
from routes.leaderboard import CACHE_KEY

logger = logging.getLogger(__name__)


def recompute_all_streaks(db: Session, today=None):
    """Refresh every user's cached streak fields for the given day."""
    if today is None:
        today = datetime.now(pytz.timezone(SCHEDULER_TIMEZONE)).date()

    logger.info("Recomputing streaks for all users (%s)", today.isoformat())
    refreshed = 0
    for user in db.query(User).all():
        try:
            refresh_activity_log(db, user, today)
            refreshed += 1
        except LeetStreakError as e:
            logger.error("Skipping streak refresh for user %s: %s", user.id, e)
    db.commit()
    return refreshed


def settle_challenges(db: Session, today=None):
    """Close elapsed challenge days and rederive member streaks and penalties."""
    if today is None:
        today = datetime.now(pytz.timezone(SCHEDULER_TIMEZONE)).date()

    logger.info("Settling challenge members (%s)", today.isoformat())
    settled = settle_all_members(db, today)
    db.commit()
    invalidate_leaderboard_cache()
    return settled


def invalidate_leaderboard_cache():
    conn_string = os.getenv("REDIS_CONN_STRING")
    if not conn_string:
        return
    try:
        redis.from_url(conn_string).delete(CACHE_KEY)
    except redis.RedisError as e:
        logger.error("Could not drop cached leaderboard: %s", e)


def _run_nightly_job():
    db = SessionLocal()
    try:
        settle_challenges(db)
        recompute_all_streaks(db)
    finally:
        db.close()


def start_scheduler():
    def job_wrapper():
        now = datetime.now(pytz.timezone(SCHEDULER_TIMEZONE))
        if now.strftime("%H:%M") == "00:05":
            _run_nightly_job()

    schedule.every().minute.do(job_wrapper)

    def run_scheduler():
        while True:
            schedule.run_pending()
            time.sleep(60)

    Thread(target=run_scheduler, daemon=True).start()
