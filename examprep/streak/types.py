from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class StreakStatus(str, Enum):
    ACTIVE = "active"
    AT_RISK = "at_risk"
    BROKEN = "broken"


@dataclass(frozen=True, slots=True)
class StreakSnapshot:
    current_streak: int
    longest_streak: int
    last_activity_date: date | None
    streak_repaired_at: datetime | None


@dataclass(slots=True)
class StreakView:
    current_streak: int
    longest_streak: int
    last_activity_date: date | None
    status: StreakStatus
    can_repair: bool
