from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from examprep.streak.rules import can_repair, classify, effective_current_streak, record_activity, repair
from examprep.streak.types import StreakSnapshot, StreakStatus

UTC = timezone.utc
TODAY = date(2026, 3, 10)
NOW = datetime(2026, 3, 10, 3, 0, tzinfo=UTC)


def snapshot(
    *,
    current_streak: int = 0,
    longest_streak: int = 0,
    last_activity_date: date | None = None,
    streak_repaired_at: datetime | None = None,
) -> StreakSnapshot:
    return StreakSnapshot(
        current_streak=current_streak,
        longest_streak=longest_streak,
        last_activity_date=last_activity_date,
        streak_repaired_at=streak_repaired_at,
    )


def test_first_activity_starts_streak() -> None:
    after = record_activity(snapshot(), day=TODAY)

    assert after.current_streak == 1
    assert after.longest_streak == 1
    assert after.last_activity_date == TODAY
    assert classify(after, day=TODAY) == StreakStatus.ACTIVE


def test_activity_on_consecutive_day_extends_streak() -> None:
    before = snapshot(current_streak=4, longest_streak=4, last_activity_date=TODAY - timedelta(days=1))

    after = record_activity(before, day=TODAY)

    assert after.current_streak == 5
    assert after.longest_streak == 5


def test_second_activity_same_day_is_noop() -> None:
    before = snapshot(current_streak=2, longest_streak=6, last_activity_date=TODAY)
    assert record_activity(before, day=TODAY) == before


def test_gap_resets_streak_but_keeps_longest() -> None:
    before = snapshot(current_streak=9, longest_streak=9, last_activity_date=TODAY - timedelta(days=3))

    after = record_activity(before, day=TODAY)

    assert after.current_streak == 1
    assert after.longest_streak == 9


def test_classify_at_risk_and_broken() -> None:
    yesterday = snapshot(current_streak=3, longest_streak=3, last_activity_date=TODAY - timedelta(days=1))
    older = snapshot(current_streak=3, longest_streak=3, last_activity_date=TODAY - timedelta(days=2))

    assert classify(yesterday, day=TODAY) == StreakStatus.AT_RISK
    assert effective_current_streak(yesterday, day=TODAY) == 3
    assert classify(older, day=TODAY) == StreakStatus.BROKEN
    assert effective_current_streak(older, day=TODAY) == 0


def test_repair_allowed_after_single_missed_day() -> None:
    before = snapshot(current_streak=7, longest_streak=7, last_activity_date=TODAY - timedelta(days=2))

    assert can_repair(before, day=TODAY, now_utc=NOW) is True
    repaired = repair(before, day=TODAY, now_utc=NOW)

    assert repaired.current_streak == 7
    assert repaired.last_activity_date == TODAY - timedelta(days=1)
    assert repaired.streak_repaired_at == NOW
    assert classify(repaired, day=TODAY) == StreakStatus.AT_RISK
    assert record_activity(repaired, day=TODAY).current_streak == 8


def test_repair_not_allowed_after_two_missed_days() -> None:
    before = snapshot(current_streak=7, longest_streak=7, last_activity_date=TODAY - timedelta(days=3))
    assert can_repair(before, day=TODAY, now_utc=NOW) is False


def test_repair_respects_cooldown() -> None:
    recently = snapshot(
        current_streak=7,
        longest_streak=7,
        last_activity_date=TODAY - timedelta(days=2),
        streak_repaired_at=NOW - timedelta(days=29),
    )
    long_ago = snapshot(
        current_streak=7,
        longest_streak=7,
        last_activity_date=TODAY - timedelta(days=2),
        streak_repaired_at=NOW - timedelta(days=30),
    )

    assert can_repair(recently, day=TODAY, now_utc=NOW) is False
    assert can_repair(long_ago, day=TODAY, now_utc=NOW) is True
