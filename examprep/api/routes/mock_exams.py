from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query, status
from pydantic import Field

from examprep.api.deps import SessionFactory, UserId, require_internal_access
from examprep.api.schemas import ApiModel
from examprep.exams.service import HISTORY_DEFAULT_LIMIT, HISTORY_MAX_LIMIT, MockExamService
from examprep.exams.types import ExamCreateOptions, ExamResults, ExamState, ExamStatus
from examprep.questions.types import MIXED_CATEGORIES, Difficulty, QuestionCategory

router = APIRouter(
    prefix="/api/mock-exams",
    tags=["mock-exams"],
    dependencies=[Depends(require_internal_access)],
)
logger = structlog.get_logger(__name__)


class QuestionOut(ApiModel):
    id: int
    category: str
    difficulty: str
    question_text: str
    options: list[dict[str, Any]]


class MockExamCreateRequest(ApiModel):
    total_questions: int = Field(gt=0, le=170)
    time_limit_minutes: int = Field(gt=0, le=600)
    passing_score: int = Field(ge=0, le=100)
    categories: list[QuestionCategory] | Literal["MIXED"] = MIXED_CATEGORIES
    difficulty: Difficulty | None = None

    def to_options(self) -> ExamCreateOptions:
        categories = () if self.categories == MIXED_CATEGORIES else tuple(c.value for c in self.categories)
        return ExamCreateOptions(
            total_questions=self.total_questions,
            time_limit_minutes=self.time_limit_minutes,
            passing_score=self.passing_score,
            categories=categories,
            difficulty=self.difficulty.value if self.difficulty is not None else None,
        )


class MockExamCreateResponse(ApiModel):
    exam_id: UUID
    total_questions: int
    time_limit_minutes: int
    passing_score: int
    status: str
    started_at: datetime
    questions: list[QuestionOut]


class MockExamStateResponse(ApiModel):
    exam_id: UUID
    status: str
    total_questions: int
    time_limit_minutes: int
    passing_score: int
    categories: list[str]
    difficulty: str | None = None
    started_at: datetime
    completed_at: datetime | None = None
    time_remaining_seconds: int
    answers: dict[str, str]
    flagged_question_ids: list[int]
    answered_count: int
    flagged_count: int
    unanswered_count: int
    score: int | None = None
    questions: list[QuestionOut]


class InProgressResponse(ApiModel):
    has_in_progress: bool
    exam: MockExamStateResponse | None = None


class AnswerRequest(ApiModel):
    question_id: int = Field(gt=0)
    selected_option_id: str = Field(min_length=1, max_length=8)


class FlagRequest(ApiModel):
    question_id: int = Field(gt=0)
    flagged: bool


class FlagResponse(ApiModel):
    flagged_question_ids: list[int]


class QuestionReviewOut(ApiModel):
    question_id: int
    question_text: str
    options: list[dict[str, Any]]
    selected_option_id: str | None = None
    correct_option_id: str
    is_correct: bool
    explanation: str
    is_flagged: bool


class MockExamResultsResponse(ApiModel):
    exam_id: UUID
    score: int
    passing_score: int
    passed: bool
    total_questions: int
    correct_answers: int
    incorrect_answers: int
    unanswered_questions: int
    started_at: datetime
    completed_at: datetime
    time_spent_seconds: int
    time_spent_minutes: int
    questions: list[QuestionReviewOut]


class HistoryItemOut(ApiModel):
    exam_id: UUID
    status: str
    total_questions: int
    passing_score: int
    score: int | None = None
    passed: bool | None = None
    started_at: datetime
    completed_at: datetime | None = None


class MockExamHistoryResponse(ApiModel):
    exams: list[HistoryItemOut]
    total_completed: int
    average_score: int
    pass_rate: int


class MockExamLimitsResponse(ApiModel):
    is_premium: bool
    max_questions_per_exam: int
    exams_used_this_month: int
    remaining_exams_this_month: int


def _state_response(state: ExamState) -> MockExamStateResponse:
    return MockExamStateResponse.model_validate(state)


def _results_response(results: ExamResults) -> MockExamResultsResponse:
    return MockExamResultsResponse.model_validate(results)


@router.post("", response_model=MockExamCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_mock_exam(
    payload: MockExamCreateRequest,
    user_id: UserId,
    session_factory: SessionFactory,
) -> MockExamCreateResponse:
    now_utc = datetime.now(timezone.utc)
    async with session_factory.begin() as session:
        result = await MockExamService.create(
            session,
            user_id=user_id,
            options=payload.to_options(),
            now_utc=now_utc,
        )
    return MockExamCreateResponse.model_validate(result)


@router.get("/limits", response_model=MockExamLimitsResponse)
async def get_mock_exam_limits(user_id: UserId, session_factory: SessionFactory) -> MockExamLimitsResponse:
    async with session_factory() as session:
        limits = await MockExamService.get_limits(
            session,
            user_id=user_id,
            now_utc=datetime.now(timezone.utc),
        )
    return MockExamLimitsResponse.model_validate(limits)


@router.get("/history", response_model=MockExamHistoryResponse)
async def get_mock_exam_history(
    user_id: UserId,
    session_factory: SessionFactory,
    exam_status: ExamStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=HISTORY_DEFAULT_LIMIT, ge=1, le=HISTORY_MAX_LIMIT),
) -> MockExamHistoryResponse:
    async with session_factory() as session:
        history = await MockExamService.history(session, user_id=user_id, status=exam_status, limit=limit)
    return MockExamHistoryResponse.model_validate(history)


@router.get("/in-progress", response_model=InProgressResponse)
async def get_in_progress_mock_exam(user_id: UserId, session_factory: SessionFactory) -> InProgressResponse:
    async with session_factory() as session:
        state = await MockExamService.get_in_progress(
            session,
            user_id=user_id,
            now_utc=datetime.now(timezone.utc),
        )
    if state is None:
        return InProgressResponse(has_in_progress=False)
    return InProgressResponse(has_in_progress=True, exam=_state_response(state))


@router.get("/{exam_id}", response_model=MockExamStateResponse)
async def get_mock_exam(exam_id: UUID, user_id: UserId, session_factory: SessionFactory) -> MockExamStateResponse:
    async with session_factory() as session:
        state = await MockExamService.get_state(
            session,
            exam_id=exam_id,
            user_id=user_id,
            now_utc=datetime.now(timezone.utc),
        )
    return _state_response(state)


@router.put("/{exam_id}/answers", status_code=status.HTTP_204_NO_CONTENT)
async def save_mock_exam_answer(
    exam_id: UUID,
    payload: AnswerRequest,
    user_id: UserId,
    session_factory: SessionFactory,
) -> None:
    async with session_factory.begin() as session:
        await MockExamService.record_answer(
            session,
            exam_id=exam_id,
            user_id=user_id,
            question_id=payload.question_id,
            selected_option_id=payload.selected_option_id,
        )


@router.put("/{exam_id}/flags", response_model=FlagResponse)
async def toggle_mock_exam_flag(
    exam_id: UUID,
    payload: FlagRequest,
    user_id: UserId,
    session_factory: SessionFactory,
) -> FlagResponse:
    async with session_factory.begin() as session:
        flagged = await MockExamService.toggle_flag(
            session,
            exam_id=exam_id,
            user_id=user_id,
            question_id=payload.question_id,
            flagged=payload.flagged,
        )
    return FlagResponse(flagged_question_ids=flagged)


@router.post("/{exam_id}/submit", response_model=MockExamResultsResponse)
async def submit_mock_exam(
    exam_id: UUID,
    user_id: UserId,
    session_factory: SessionFactory,
) -> MockExamResultsResponse:
    async with session_factory.begin() as session:
        results = await MockExamService.submit(
            session,
            exam_id=exam_id,
            user_id=user_id,
            now_utc=datetime.now(timezone.utc),
        )
    return _results_response(results)


@router.get("/{exam_id}/results", response_model=MockExamResultsResponse)
async def get_mock_exam_results(
    exam_id: UUID,
    user_id: UserId,
    session_factory: SessionFactory,
) -> MockExamResultsResponse:
    async with session_factory() as session:
        results = await MockExamService.get_results(session, exam_id=exam_id, user_id=user_id)
    return _results_response(results)


@router.post("/{exam_id}/abandon", status_code=status.HTTP_204_NO_CONTENT)
async def abandon_mock_exam(exam_id: UUID, user_id: UserId, session_factory: SessionFactory) -> None:
    async with session_factory.begin() as session:
        await MockExamService.abandon(
            session,
            exam_id=exam_id,
            user_id=user_id,
            now_utc=datetime.now(timezone.utc),
        )
