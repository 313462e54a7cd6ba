from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from examprep.access.policy import UNLIMITED
from examprep.core.errors import ErrorKind
from examprep.quota import service as quota_service
from examprep.quota.errors import QuotaExceededError
from examprep.quota.service import QuotaLedger, today_for_usage
from examprep.quota.types import UsageCounter

UTC = timezone.utc
NOW = datetime(2026, 3, 10, 3, 0, tzinfo=UTC)


class _InMemoryDailyUsageRepo:
    def __init__(self) -> None:
        self.counts: dict[tuple[str, int, date], int] = {}

    async def get_count(self, session, *, kind: str, user_id: int, local_date: date) -> int:
        return self.counts.get((kind, user_id, local_date), 0)

    async def increment(self, session, *, kind: str, user_id: int, local_date: date) -> int:
        key = (kind, user_id, local_date)
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    async def increment_below_limit(
        self,
        session,
        *,
        kind: str,
        user_id: int,
        local_date: date,
        limit: int,
    ) -> int | None:
        key = (kind, user_id, local_date)
        if limit <= 0 or self.counts.get(key, 0) >= limit:
            return None
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]


@pytest.fixture
def usage_repo(monkeypatch) -> _InMemoryDailyUsageRepo:
    repo = _InMemoryDailyUsageRepo()
    monkeypatch.setattr(quota_service, "DailyUsageRepo", repo)
    return repo


def test_today_for_usage_uses_manila_calendar_day() -> None:
    assert today_for_usage(datetime(2026, 3, 1, 15, 59, tzinfo=UTC)) == date(2026, 3, 1)
    assert today_for_usage(datetime(2026, 3, 1, 16, 0, tzinfo=UTC)) == date(2026, 3, 2)


@pytest.mark.asyncio
async def test_free_practice_allows_fifteen_then_rejects(usage_repo) -> None:
    for expected in range(1, 16):
        count = await QuotaLedger.consume_today(
            None,
            user_id=1,
            kind=UsageCounter.PRACTICE,
            limit=15,
            now_utc=NOW,
        )
        assert count == expected

    with pytest.raises(QuotaExceededError) as exc_info:
        await QuotaLedger.consume_today(
            None,
            user_id=1,
            kind=UsageCounter.PRACTICE,
            limit=15,
            now_utc=NOW,
        )

    assert exc_info.value.kind == ErrorKind.FORBIDDEN_BY_POLICY
    assert "Season Pass" in exc_info.value.message
    assert await QuotaLedger.get_today_count(None, user_id=1, kind=UsageCounter.PRACTICE, now_utc=NOW) == 15


@pytest.mark.asyncio
async def test_unlimited_limit_always_increments(usage_repo) -> None:
    for _ in range(200):
        count = await QuotaLedger.consume_today(
            None,
            user_id=2,
            kind=UsageCounter.EXPLANATION,
            limit=UNLIMITED,
            now_utc=NOW,
        )
    assert count == 200


@pytest.mark.asyncio
async def test_counters_are_separate_per_kind_and_user(usage_repo) -> None:
    for _ in range(3):
        await QuotaLedger.consume_today(None, user_id=3, kind=UsageCounter.EXPLANATION, limit=3, now_utc=NOW)

    with pytest.raises(QuotaExceededError):
        await QuotaLedger.consume_today(None, user_id=3, kind=UsageCounter.EXPLANATION, limit=3, now_utc=NOW)

    assert await QuotaLedger.consume_today(None, user_id=3, kind=UsageCounter.PRACTICE, limit=15, now_utc=NOW) == 1
    assert await QuotaLedger.consume_today(None, user_id=4, kind=UsageCounter.EXPLANATION, limit=3, now_utc=NOW) == 1


@pytest.mark.asyncio
async def test_new_local_day_starts_from_zero(usage_repo) -> None:
    late_evening = datetime(2026, 3, 10, 15, 30, tzinfo=UTC)
    next_morning = datetime(2026, 3, 10, 16, 30, tzinfo=UTC)
    for _ in range(3):
        await QuotaLedger.consume_today(None, user_id=5, kind=UsageCounter.EXPLANATION, limit=3, now_utc=late_evening)

    count = await QuotaLedger.consume_today(
        None,
        user_id=5,
        kind=UsageCounter.EXPLANATION,
        limit=3,
        now_utc=next_morning,
    )
    assert count == 1


def test_ensure_within_limit_for_monthly_exams() -> None:
    QuotaLedger.ensure_within_limit(kind=UsageCounter.MOCK_EXAM, limit=3, used=2, period="month")
    QuotaLedger.ensure_within_limit(kind=UsageCounter.MOCK_EXAM, limit=UNLIMITED, used=500, period="month")

    with pytest.raises(QuotaExceededError, match="3 mock exams per month"):
        QuotaLedger.ensure_within_limit(kind=UsageCounter.MOCK_EXAM, limit=3, used=3, period="month")


@pytest.mark.asyncio
async def test_month_count_starts_at_local_month_boundary(monkeypatch) -> None:
    captured: dict[str, object] = {}

    async def _count_started_since(session, *, user_id, since_utc, statuses) -> int:
        captured["since_utc"] = since_utc
        captured["statuses"] = tuple(statuses)
        return 2

    monkeypatch.setattr(quota_service.MockExamSessionsRepo, "count_started_since", _count_started_since)

    used = await QuotaLedger.get_month_count(
        None,
        user_id=1,
        kind=UsageCounter.MOCK_EXAM,
        now_utc=datetime(2026, 3, 10, 3, 0, tzinfo=UTC),
    )

    assert used == 2
    # 2026-03-01 00:00 in Manila
    assert captured["since_utc"] == datetime(2026, 2, 28, 16, 0, tzinfo=UTC)
    assert captured["statuses"] == ("COMPLETED", "ABANDONED")


@pytest.mark.asyncio
async def test_daily_helpers_reject_monthly_counter() -> None:
    with pytest.raises(ValueError):
        await QuotaLedger.get_today_count(None, user_id=1, kind=UsageCounter.MOCK_EXAM, now_utc=NOW)
