from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

UNLIMITED = -1

FREE_PRACTICE_DAILY_LIMIT = 15
FREE_EXAM_MAX_QUESTIONS = 20
FREE_EXAM_MONTHLY_LIMIT = 3
FREE_EXPLANATION_DAILY_LIMIT = 3

PREMIUM_EXAM_MAX_QUESTIONS = 170


@dataclass(frozen=True, slots=True)
class AccessLimits:
    is_premium: bool
    practice_daily_limit: int
    exam_max_questions: int
    exam_monthly_limit: int
    explanation_daily_limit: int


FREE_LIMITS = AccessLimits(
    is_premium=False,
    practice_daily_limit=FREE_PRACTICE_DAILY_LIMIT,
    exam_max_questions=FREE_EXAM_MAX_QUESTIONS,
    exam_monthly_limit=FREE_EXAM_MONTHLY_LIMIT,
    explanation_daily_limit=FREE_EXPLANATION_DAILY_LIMIT,
)

PREMIUM_LIMITS = AccessLimits(
    is_premium=True,
    practice_daily_limit=UNLIMITED,
    exam_max_questions=PREMIUM_EXAM_MAX_QUESTIONS,
    exam_monthly_limit=UNLIMITED,
    explanation_daily_limit=UNLIMITED,
)


def is_effective_premium(*, is_premium: bool, premium_expiry: datetime | None, now_utc: datetime) -> bool:
    if not is_premium:
        return False
    return premium_expiry is None or premium_expiry > now_utc


def resolve_limits(*, is_premium: bool, premium_expiry: datetime | None, now_utc: datetime) -> AccessLimits:
    if is_effective_premium(is_premium=is_premium, premium_expiry=premium_expiry, now_utc=now_utc):
        return PREMIUM_LIMITS
    return FREE_LIMITS


def is_unlimited(limit: int) -> bool:
    return limit == UNLIMITED


def remaining(*, limit: int, used: int) -> int:
    if is_unlimited(limit):
        return UNLIMITED
    return max(limit - used, 0)
