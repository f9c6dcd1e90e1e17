from datetime import date
from decimal import Decimal

import scheduler
from helpers.records import load_leaderboard_records
from models import ActivityDate, ActivityLog, Challenge, ChallengeMember, DailyProgress, User
from scheduler import recompute_all_streaks, settle_challenges


def add_user(db, name, days):
    user = User(name=name)
    db.add(user)
    db.flush()
    for day in days:
        db.add(ActivityDate(user_id=user.id, activity_date=day))
    db.commit()
    return user


def test_recompute_refreshes_every_log(db):
    alex = add_user(db, "Alex Chen", [date(2024, 3, 8), date(2024, 3, 9), date(2024, 3, 10)])
    sarah = add_user(db, "Sarah Miller", [date(2024, 3, 1)])

    assert recompute_all_streaks(db, today=date(2024, 3, 10)) == 2

    alex_log = db.query(ActivityLog).filter(ActivityLog.user_id == alex.id).one()
    assert (alex_log.current_streak, alex_log.longest_streak) == (3, 3)
    assert alex_log.last_updated is not None

    sarah_log = db.query(ActivityLog).filter(ActivityLog.user_id == sarah.id).one()
    assert (sarah_log.current_streak, sarah_log.longest_streak) == (0, 1)


def test_recompute_decays_streak_after_missed_days(db):
    alex = add_user(db, "Alex Chen", [date(2024, 3, 9), date(2024, 3, 10)])
    recompute_all_streaks(db, today=date(2024, 3, 10))
    recompute_all_streaks(db, today=date(2024, 3, 12))

    log = db.query(ActivityLog).filter(ActivityLog.user_id == alex.id).one()
    assert log.current_streak == 0
    assert log.longest_streak == 2


def test_recompute_skips_logs_with_future_dates(db):
    add_user(db, "Alex Chen", [date(2024, 3, 20)])
    add_user(db, "Sarah Miller", [date(2024, 3, 9)])
    assert recompute_all_streaks(db, today=date(2024, 3, 10)) == 1


def add_challenge_member(db, name, progress, start=date(2024, 3, 1), end=date(2024, 3, 31)):
    user = User(name=name)
    db.add(user)
    db.flush()
    challenge = Challenge(
        name="March Grind",
        daily_target=2,
        difficulty="medium",
        penalty_amount=Decimal("5"),
        start_date=start,
        end_date=end,
        created_by=user.id,
        is_active=1,
    )
    db.add(challenge)
    db.flush()
    member = ChallengeMember(challenge_id=challenge.id, user_id=user.id, joined_at=start)
    db.add(member)
    db.flush()
    for day, solved, status in progress:
        db.add(DailyProgress(member_id=member.id, progress_date=day, solved=solved, target=2, status=status))
    db.commit()
    return user, member


def statuses(db, member):
    rows = (
        db.query(DailyProgress)
        .filter(DailyProgress.member_id == member.id)
        .order_by(DailyProgress.progress_date)
        .all()
    )
    return {r.progress_date: r.status for r in rows}


def test_settle_fails_open_days_once_they_pass(db):
    _, member = add_challenge_member(db, "Alex Chen", [(date(2024, 3, 5), 1, "pending")])

    assert settle_challenges(db, today=date(2024, 3, 6)) == 1

    db.refresh(member)
    days = statuses(db, member)
    assert days[date(2024, 3, 5)] == "failed"
    # Elapsed days without an entry are recorded as failed too
    assert len(days) == 5
    assert set(days.values()) == {"failed"}
    assert member.total_penalty == Decimal("25")
    assert member.status == "pending"


def test_settle_decays_streak_and_grows_penalty(db):
    progress = [(date(2024, 3, d), 2, "completed") for d in range(1, 6)]
    _, member = add_challenge_member(db, "Alex Chen", progress)

    settle_challenges(db, today=date(2024, 3, 6))
    db.refresh(member)
    assert member.streak == 5
    assert member.total_penalty == Decimal("0")

    settle_challenges(db, today=date(2024, 3, 9))
    db.refresh(member)
    assert member.streak == 0
    assert member.total_penalty == Decimal("15")
    days = statuses(db, member)
    assert [days[date(2024, 3, d)] for d in (6, 7, 8)] == ["failed", "failed", "failed"]


def test_settle_stops_at_challenge_end(db):
    _, member = add_challenge_member(
        db, "Alex Chen", [], start=date(2024, 3, 1), end=date(2024, 3, 3)
    )
    settle_challenges(db, today=date(2024, 3, 20))

    db.refresh(member)
    assert len(statuses(db, member)) == 3
    assert member.total_penalty == Decimal("15")


def test_settled_members_feed_the_global_leaderboard(db):
    user, _ = add_challenge_member(db, "Alex Chen", [(date(2024, 3, 1), 3, "completed")])

    settle_challenges(db, today=date(2024, 3, 4))

    [record] = load_leaderboard_records(db)
    assert record.user_id == user.public_id
    assert record.total_solved == 3
    assert record.missed_days == 2
    assert record.current_streak == 0
    assert record.penalty_amount == 10


def test_settle_drops_cached_leaderboard(db, monkeypatch):
    dropped = []
    monkeypatch.setattr(scheduler, "invalidate_leaderboard_cache", lambda: dropped.append(True))

    settle_challenges(db, today=date(2024, 3, 4))
    assert dropped == [True]
