from __future__ import annotations

from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends

from examprep.analytics.service import AnalyticsService
from examprep.analytics.types import PerformanceStatus
from examprep.api.deps import SessionFactory, UserId, require_internal_access
from examprep.api.schemas import ApiModel

router = APIRouter(
    prefix="/api/analytics",
    tags=["analytics"],
    dependencies=[Depends(require_internal_access)],
)


class CategoryPerformanceOut(ApiModel):
    category: str
    total_attempted: int
    correct_answers: int
    accuracy: int
    average_difficulty: str | None = None
    status: PerformanceStatus


class WeakAreaOut(ApiModel):
    category: str
    accuracy: int
    total_attempted: int
    recommendation: str


class StrengthsWeaknessesResponse(ApiModel):
    strengths: list[CategoryPerformanceOut]
    weaknesses: list[WeakAreaOut]


class DayActivityOut(ApiModel):
    day: date
    label: str
    practice_questions: int
    exam_questions_answered: int
    questions_attempted: int
    correct_answers: int
    accuracy: int


class WeeklyActivityResponse(ApiModel):
    labels: list[str]
    data: list[DayActivityOut]


class CategoryTimeOut(ApiModel):
    category: str
    minutes: int
    percentage: int


class TimeTrackingResponse(ApiModel):
    total_minutes: int
    hours: int
    minutes: int
    breakdown: list[CategoryTimeOut]


class StreakSummaryOut(ApiModel):
    current_streak: int
    longest_streak: int


class MockExamSummaryOut(ApiModel):
    completed: int
    average_score: int
    pass_rate: int
    best_score: int | None = None


class DashboardResponse(ApiModel):
    total_questions: int
    practice_questions: int
    exam_questions_answered: int
    accuracy: int
    study_time: TimeTrackingResponse
    streak: StreakSummaryOut
    mock_exams: MockExamSummaryOut


class AnalyticsOverviewResponse(ApiModel):
    dashboard: DashboardResponse
    weekly_activity: WeeklyActivityResponse
    strengths_weaknesses: StrengthsWeaknessesResponse
    performance_by_category: list[CategoryPerformanceOut]
    time_tracking: TimeTrackingResponse


@router.get("", response_model=AnalyticsOverviewResponse)
async def get_overview(user_id: UserId, session_factory: SessionFactory) -> AnalyticsOverviewResponse:
    async with session_factory() as session:
        overview = await AnalyticsService.overview(session, user_id=user_id, now_utc=datetime.now(timezone.utc))
    return AnalyticsOverviewResponse.model_validate(overview)


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(user_id: UserId, session_factory: SessionFactory) -> DashboardResponse:
    async with session_factory() as session:
        dashboard = await AnalyticsService.dashboard(session, user_id=user_id, now_utc=datetime.now(timezone.utc))
    return DashboardResponse.model_validate(dashboard)


@router.get("/weekly-activity", response_model=WeeklyActivityResponse)
async def get_weekly_activity(user_id: UserId, session_factory: SessionFactory) -> WeeklyActivityResponse:
    async with session_factory() as session:
        activity = await AnalyticsService.weekly_activity(
            session,
            user_id=user_id,
            now_utc=datetime.now(timezone.utc),
        )
    return WeeklyActivityResponse.model_validate(activity)


@router.get("/strengths-weaknesses", response_model=StrengthsWeaknessesResponse)
async def get_strengths_weaknesses(user_id: UserId, session_factory: SessionFactory) -> StrengthsWeaknessesResponse:
    async with session_factory() as session:
        result = await AnalyticsService.strengths_weaknesses(session, user_id=user_id)
    return StrengthsWeaknessesResponse.model_validate(result)


@router.get("/performance-by-category", response_model=list[CategoryPerformanceOut])
async def get_performance_by_category(user_id: UserId, session_factory: SessionFactory) -> list[CategoryPerformanceOut]:
    async with session_factory() as session:
        items = await AnalyticsService.performance_by_category(session, user_id=user_id)
    return [CategoryPerformanceOut.model_validate(item) for item in items]


@router.get("/time-tracking", response_model=TimeTrackingResponse)
async def get_time_tracking(user_id: UserId, session_factory: SessionFactory) -> TimeTrackingResponse:
    async with session_factory() as session:
        result = await AnalyticsService.time_tracking(session, user_id=user_id)
    return TimeTrackingResponse.model_validate(result)
