from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta

from examprep.streak.types import StreakSnapshot, StreakStatus

REPAIR_COOLDOWN = timedelta(days=30)


def record_activity(snapshot: StreakSnapshot, *, day: date) -> StreakSnapshot:
    last = snapshot.last_activity_date
    if last is not None and last >= day:
        return snapshot

    if last is not None and last == day - timedelta(days=1):
        current = snapshot.current_streak + 1
    else:
        current = 1

    return replace(
        snapshot,
        current_streak=current,
        longest_streak=max(snapshot.longest_streak, current),
        last_activity_date=day,
    )


def classify(snapshot: StreakSnapshot, *, day: date) -> StreakStatus:
    last = snapshot.last_activity_date
    if last is not None and last >= day:
        return StreakStatus.ACTIVE
    if last is not None and last == day - timedelta(days=1):
        return StreakStatus.AT_RISK
    return StreakStatus.BROKEN


def can_repair(snapshot: StreakSnapshot, *, day: date, now_utc: datetime) -> bool:
    """A streak survives one missed day, at most once per cooldown window."""
    if snapshot.current_streak <= 0 or snapshot.last_activity_date is None:
        return False
    if snapshot.last_activity_date != day - timedelta(days=2):
        return False
    if snapshot.streak_repaired_at is not None and now_utc - snapshot.streak_repaired_at < REPAIR_COOLDOWN:
        return False
    return True


def repair(snapshot: StreakSnapshot, *, day: date, now_utc: datetime) -> StreakSnapshot:
    return replace(
        snapshot,
        last_activity_date=day - timedelta(days=1),
        streak_repaired_at=now_utc,
    )


def effective_current_streak(snapshot: StreakSnapshot, *, day: date) -> int:
    if classify(snapshot, day=day) == StreakStatus.BROKEN:
        return 0
    return snapshot.current_streak
