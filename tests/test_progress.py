from datetime import date

import pytest

from errors import InvalidArgumentError
from helpers.progress import (
    active_dates,
    activity_heatmap,
    dashboard_stats,
    global_records,
    leaderboard_record,
    submission_chart,
)
from schemas.challenge import ChallengeMemberSnapshot, ChallengeSnapshot, DailyProgressItem

TODAY = "2024-03-15"


def progress(day, solved, target=2, status=None):
    if status is None:
        status = "completed" if solved >= target else "failed"
    return DailyProgressItem(date=day, solved=solved, target=target, status=status)


def member(user_id, name, entries, streak=0, penalty=0.0):
    return ChallengeMemberSnapshot(
        user_id=user_id,
        user_name=name,
        streak=streak,
        total_penalty=penalty,
        daily_progress=entries,
    )


def challenge(challenge_id, members, is_active=True):
    return ChallengeSnapshot(
        id=challenge_id,
        name=f"Challenge {challenge_id}",
        daily_target=2,
        difficulty="any",
        penalty_amount=5,
        start_date=date(2024, 3, 1),
        end_date=date(2024, 3, 31),
        created_by="u1",
        is_active=is_active,
        members=members,
    )


def test_any_solve_makes_a_day_active_even_below_target():
    entries = [
        progress("2024-03-13", 1, target=2, status="failed"),
        progress("2024-03-14", 0, target=2, status="failed"),
        progress("2024-03-15", 3),
    ]
    assert active_dates(entries) == {date(2024, 3, 13), date(2024, 3, 15)}


def test_leaderboard_record_maps_member_totals():
    m = member("u1", "Alex Chen", [
        progress("2024-03-13", 2),
        progress("2024-03-14", 1),
        progress("2024-03-15", 0, status="pending"),
    ], streak=2, penalty=5)
    record = leaderboard_record(m)
    assert record.user_id == "u1"
    assert record.user_name == "Alex Chen"
    assert record.total_solved == 3
    assert record.current_streak == 2
    assert record.missed_days == 1
    assert record.penalty_amount == 5


def test_global_records_merge_memberships_of_the_same_user():
    members = [
        member("u1", "Alex Chen", [progress("2024-03-14", 2)], streak=3, penalty=10),
        member("u2", "Sarah Miller", [progress("2024-03-14", 1)], streak=1),
        member("u1", "Alex C.", [progress("2024-03-14", 0, target=1)], streak=8, penalty=20),
    ]
    records = global_records(members)
    assert [r.user_id for r in records] == ["u1", "u2"]
    alex = records[0]
    assert alex.user_name == "Alex Chen"
    assert alex.total_solved == 2
    assert alex.current_streak == 8
    assert alex.missed_days == 1
    assert alex.penalty_amount == 30


def test_dashboard_stats_combine_challenges():
    running = challenge(1, [
        member("u1", "Alex Chen", [
            progress("2024-03-13", 2),
            progress("2024-03-14", 1),
            progress("2024-03-15", 2),
        ], streak=3, penalty=5),
        member("u2", "Sarah Miller", [progress("2024-03-15", 4)]),
    ])
    finished = challenge(2, [
        member("u1", "Alex Chen", [progress("2024-03-10", 1, target=1)], streak=1, penalty=10),
    ], is_active=False)

    stats = dashboard_stats("u1", [running, finished], TODAY)
    assert stats.today_status == "completed"
    assert stats.today_solved == 2
    assert stats.today_target == 2
    assert stats.current_streak == 3
    assert stats.longest_streak == 3
    assert stats.total_penalties == 15
    assert stats.active_challenges == 1
    assert stats.total_solved == 6


def test_dashboard_stats_today_pending_and_failed():
    pending = challenge(1, [member("u1", "Alex", [progress(TODAY, 1, status="pending")])])
    assert dashboard_stats("u1", [pending], TODAY).today_status == "pending"

    failed = challenge(2, [member("u1", "Alex", [progress(TODAY, 0, status="failed")])])
    assert dashboard_stats("u1", [pending, failed], TODAY).today_status == "failed"


def test_dashboard_stats_for_user_without_challenges():
    stats = dashboard_stats("nobody", [], TODAY)
    assert stats.today_status == "pending"
    assert stats.current_streak == 0
    assert stats.active_challenges == 0


def test_activity_heatmap_is_zero_filled_oldest_first():
    entries = [
        progress("2024-03-14", 1),
        progress("2024-03-14", 2),
        progress("2024-03-15", 3),
    ]
    points = activity_heatmap(entries, TODAY, days=3)
    assert [(p.date, p.count) for p in points] == [
        ("2024-03-13", 0),
        ("2024-03-14", 3),
        ("2024-03-15", 3),
    ]
    assert len(activity_heatmap([], TODAY)) == 365


def test_submission_chart_sums_targets():
    entries = [progress("2024-03-14", 1, target=2), progress("2024-03-14", 1, target=1)]
    points = submission_chart(entries, TODAY, days=2)
    assert [(p.date, p.solved, p.target) for p in points] == [
        ("2024-03-14", 2, 3),
        ("2024-03-15", 0, 0),
    ]


def test_series_length_must_be_positive():
    with pytest.raises(InvalidArgumentError):
        submission_chart([], TODAY, days=0)
