from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import Field

from examprep.api.deps import Cache, SessionFactory, UserId, require_internal_access
from examprep.api.schemas import ApiModel
from examprep.practice.service import PracticeService
from examprep.questions.types import Difficulty, QuestionCategory
from examprep.quota.types import DailyUsage

router = APIRouter(
    prefix="/api/practice",
    tags=["practice"],
    dependencies=[Depends(require_internal_access)],
)


class PracticeQuestionResponse(ApiModel):
    id: int
    category: str
    difficulty: str
    question_text: str
    options: list[dict[str, Any]]


class PracticeAnswerRequest(ApiModel):
    question_id: int = Field(gt=0)
    selected_option_id: str = Field(min_length=1, max_length=8)


class PracticeAnswerResponse(ApiModel):
    question_id: int
    is_correct: bool
    correct_option_id: str
    selected_option_id: str
    explanation: str
    points_earned: int
    used_today: int
    current_streak: int


class DailyLimitsResponse(ApiModel):
    is_premium: bool
    daily_limit: int
    used_today: int
    remaining_today: int


class ExplanationResponse(ApiModel):
    question_id: int
    explanation: str
    views_used_today: int


def _limits_response(usage: DailyUsage) -> DailyLimitsResponse:
    return DailyLimitsResponse.model_validate(usage)


@router.get("/questions/next", response_model=PracticeQuestionResponse)
async def get_next_practice_question(
    _user_id: UserId,
    session_factory: SessionFactory,
    category: QuestionCategory | None = Query(default=None),
    difficulty: Difficulty | None = Query(default=None),
) -> PracticeQuestionResponse:
    async with session_factory() as session:
        question = await PracticeService.next_question(
            session,
            category=category.value if category is not None else None,
            difficulty=difficulty.value if difficulty is not None else None,
        )
    return PracticeQuestionResponse.model_validate(question)


@router.post("/answers", response_model=PracticeAnswerResponse)
async def submit_practice_answer(
    payload: PracticeAnswerRequest,
    user_id: UserId,
    session_factory: SessionFactory,
) -> PracticeAnswerResponse:
    async with session_factory.begin() as session:
        result = await PracticeService.submit_answer(
            session,
            user_id=user_id,
            question_id=payload.question_id,
            selected_option_id=payload.selected_option_id,
            now_utc=datetime.now(timezone.utc),
        )
    return PracticeAnswerResponse.model_validate(result)


@router.get("/limits", response_model=DailyLimitsResponse)
async def get_practice_limits(user_id: UserId, session_factory: SessionFactory) -> DailyLimitsResponse:
    async with session_factory() as session:
        usage = await PracticeService.get_daily_limits(
            session,
            user_id=user_id,
            now_utc=datetime.now(timezone.utc),
        )
    return _limits_response(usage)


@router.get("/explanation-limits", response_model=DailyLimitsResponse)
async def get_explanation_limits(user_id: UserId, session_factory: SessionFactory) -> DailyLimitsResponse:
    async with session_factory() as session:
        usage = await PracticeService.get_explanation_limits(
            session,
            user_id=user_id,
            now_utc=datetime.now(timezone.utc),
        )
    return _limits_response(usage)


@router.get("/questions/{question_id}/explanation", response_model=ExplanationResponse)
async def get_question_explanation(
    question_id: int,
    user_id: UserId,
    session_factory: SessionFactory,
    cache: Cache,
) -> ExplanationResponse:
    async with session_factory.begin() as session:
        result = await PracticeService.get_explanation(
            session,
            cache,
            user_id=user_id,
            question_id=question_id,
            now_utc=datetime.now(timezone.utc),
        )
    return ExplanationResponse.model_validate(result)
