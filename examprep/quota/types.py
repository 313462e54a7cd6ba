from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class UsageCounter(str, Enum):
    PRACTICE = "PRACTICE"
    EXPLANATION = "EXPLANATION"
    MOCK_EXAM = "MOCK_EXAM"


DAILY_COUNTERS = frozenset({UsageCounter.PRACTICE, UsageCounter.EXPLANATION})
MONTHLY_COUNTERS = frozenset({UsageCounter.MOCK_EXAM})

# exam sessions that used up a monthly slot
MONTHLY_EXAM_COUNTED_STATUSES = ("COMPLETED", "ABANDONED")


@dataclass(slots=True)
class DailyUsage:
    is_premium: bool
    daily_limit: int
    used_today: int
    remaining_today: int
