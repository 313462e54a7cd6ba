from __future__ import annotations

import random
from datetime import datetime
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.access.policy import remaining
from examprep.access.service import load_user_limits
from examprep.db.models.mock_exam_sessions import MockExamSession
from examprep.db.repo.mock_exam_sessions_repo import MockExamSessionsRepo
from examprep.db.repo.questions_repo import QuestionFilter, QuestionsRepo
from examprep.exams.errors import (
    ExamAlreadyInProgressError,
    ExamNotCompletedError,
    ExamNotFoundError,
    ExamNotInProgressError,
    InvalidExamOptionsError,
    QuestionNotInExamError,
)
from examprep.exams.scoring import is_passed, percent_half_up, round_half_up_ratio, score_exam
from examprep.exams.types import (
    ExamCreateOptions,
    ExamHistory,
    ExamHistoryItem,
    ExamLimits,
    ExamResults,
    ExamStartResult,
    ExamState,
    ExamStatus,
    QuestionReview,
)
from examprep.questions.errors import InvalidOptionError
from examprep.questions.selection import select_random_question_ids
from examprep.questions.types import (
    MIXED_CATEGORIES,
    Difficulty,
    QuestionCategory,
    as_question_view,
    option_ids,
)
from examprep.quota.errors import CapabilityExceededError
from examprep.quota.service import QuotaLedger
from examprep.quota.types import UsageCounter

logger = structlog.get_logger(__name__)

MAX_TIME_LIMIT_MINUTES = 600
HISTORY_DEFAULT_LIMIT = 10
HISTORY_MAX_LIMIT = 100

_CATEGORY_VALUES = {category.value for category in QuestionCategory}
_DIFFICULTY_VALUES = {difficulty.value for difficulty in Difficulty}


def _validate_options(options: ExamCreateOptions) -> None:
    field_errors: dict[str, str] = {}
    if options.total_questions <= 0:
        field_errors["totalQuestions"] = "must be greater than 0"
    if not 0 < options.time_limit_minutes <= MAX_TIME_LIMIT_MINUTES:
        field_errors["timeLimitMinutes"] = f"must be between 1 and {MAX_TIME_LIMIT_MINUTES}"
    if not 0 <= options.passing_score <= 100:
        field_errors["passingScore"] = "must be between 0 and 100"
    unknown = [category for category in options.categories if category not in _CATEGORY_VALUES]
    if unknown:
        field_errors["categories"] = f"unknown categories: {', '.join(sorted(unknown))}"
    if options.difficulty is not None and options.difficulty not in _DIFFICULTY_VALUES:
        field_errors["difficulty"] = "must be EASY, MEDIUM or HARD"
    if field_errors:
        raise InvalidExamOptionsError("Invalid mock exam settings", field_errors=field_errors)


def _question_filter(options: ExamCreateOptions) -> QuestionFilter:
    categories = tuple(sorted(set(options.categories))) or None
    return QuestionFilter(categories=categories, difficulty=options.difficulty)


def _elapsed_seconds(exam: MockExamSession, *, now_utc: datetime) -> int:
    end = exam.completed_at or now_utc
    return max(int((end - exam.started_at).total_seconds()), 0)


def _time_remaining_seconds(exam: MockExamSession, *, now_utc: datetime) -> int:
    if exam.status != ExamStatus.IN_PROGRESS.value:
        return 0
    return max(exam.time_limit_minutes * 60 - _elapsed_seconds(exam, now_utc=now_utc), 0)


async def _load_owned(
    session: AsyncSession,
    *,
    exam_id: UUID,
    user_id: int,
    for_update: bool,
) -> MockExamSession:
    if for_update:
        exam = await MockExamSessionsRepo.get_by_id_for_update(session, exam_id)
    else:
        exam = await MockExamSessionsRepo.get_by_id(session, exam_id)
    # another user's exam is reported as missing
    if exam is None or exam.user_id != user_id:
        raise ExamNotFoundError
    return exam


async def _load_in_progress(session: AsyncSession, *, exam_id: UUID, user_id: int) -> MockExamSession:
    exam = await _load_owned(session, exam_id=exam_id, user_id=user_id, for_update=True)
    if exam.status != ExamStatus.IN_PROGRESS.value:
        raise ExamNotInProgressError
    return exam


async def _ordered_questions(session: AsyncSession, exam: MockExamSession) -> list:
    by_id = {question.id: question for question in await QuestionsRepo.list_by_ids(session, exam.question_ids)}
    return [by_id[question_id] for question_id in exam.question_ids if question_id in by_id]


def _build_results(exam: MockExamSession, questions: list) -> ExamResults:
    breakdown = score_exam(
        question_ids=exam.question_ids,
        answers=exam.answers,
        correct_option_by_id={question.id: question.correct_option_id for question in questions},
    )
    flagged = set(exam.flagged_question_ids)
    reviews = []
    for question in questions:
        selected = exam.answers.get(str(question.id))
        reviews.append(
            QuestionReview(
                question_id=question.id,
                question_text=question.question_text,
                options=list(question.options),
                selected_option_id=selected,
                correct_option_id=question.correct_option_id,
                is_correct=selected == question.correct_option_id,
                explanation=question.explanation,
                is_flagged=question.id in flagged,
            )
        )

    completed_at = exam.completed_at or exam.started_at
    elapsed = _elapsed_seconds(exam, now_utc=completed_at)
    return ExamResults(
        exam_id=exam.id,
        score=breakdown.score,
        passing_score=exam.passing_score,
        passed=is_passed(score=breakdown.score, passing_score=exam.passing_score),
        total_questions=exam.total_questions,
        correct_answers=breakdown.correct_answers,
        incorrect_answers=breakdown.incorrect_answers,
        unanswered_questions=breakdown.unanswered_questions,
        started_at=exam.started_at,
        completed_at=completed_at,
        time_spent_seconds=elapsed,
        time_spent_minutes=round_half_up_ratio(elapsed, 60),
        questions=reviews,
    )


def _build_state(exam: MockExamSession, questions: list, *, now_utc: datetime) -> ExamState:
    answered = sum(1 for question_id in exam.question_ids if str(question_id) in exam.answers)
    return ExamState(
        exam_id=exam.id,
        status=exam.status,
        total_questions=exam.total_questions,
        time_limit_minutes=exam.time_limit_minutes,
        passing_score=exam.passing_score,
        categories=list(exam.categories),
        difficulty=exam.difficulty,
        started_at=exam.started_at,
        completed_at=exam.completed_at,
        time_remaining_seconds=_time_remaining_seconds(exam, now_utc=now_utc),
        answers=dict(exam.answers),
        flagged_question_ids=list(exam.flagged_question_ids),
        answered_count=answered,
        flagged_count=len(exam.flagged_question_ids),
        unanswered_count=len(exam.question_ids) - answered,
        score=exam.score,
        questions=[as_question_view(question) for question in questions],
    )


class MockExamService:
    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        user_id: int,
        options: ExamCreateOptions,
        now_utc: datetime,
        rng: random.Random | None = None,
    ) -> ExamStartResult:
        _validate_options(options)
        # the user row lock serializes exam starts of one user
        _, limits = await load_user_limits(session, user_id=user_id, now_utc=now_utc, for_update=True)

        if options.total_questions > limits.exam_max_questions:
            raise CapabilityExceededError(what="questions per mock exam", limit=limits.exam_max_questions)

        if await MockExamSessionsRepo.get_in_progress_for_user(session, user_id=user_id) is not None:
            raise ExamAlreadyInProgressError

        used_this_month = await QuotaLedger.get_month_count(
            session,
            user_id=user_id,
            kind=UsageCounter.MOCK_EXAM,
            now_utc=now_utc,
        )
        QuotaLedger.ensure_within_limit(
            kind=UsageCounter.MOCK_EXAM,
            limit=limits.exam_monthly_limit,
            used=used_this_month,
            period="month",
        )

        question_ids = await select_random_question_ids(
            session,
            question_filter=_question_filter(options),
            count=options.total_questions,
            rng=rng,
        )
        exam = await MockExamSessionsRepo.create(
            session,
            exam=MockExamSession(
                id=uuid4(),
                user_id=user_id,
                total_questions=options.total_questions,
                time_limit_minutes=options.time_limit_minutes,
                passing_score=options.passing_score,
                categories=list(options.categories) or [MIXED_CATEGORIES],
                difficulty=options.difficulty,
                status=ExamStatus.IN_PROGRESS.value,
                question_ids=question_ids,
                answers={},
                flagged_question_ids=[],
                score=None,
                started_at=now_utc,
                completed_at=None,
            ),
        )
        questions = await _ordered_questions(session, exam)

        logger.info(
            "mock_exam_started",
            user_id=user_id,
            exam_id=str(exam.id),
            total_questions=exam.total_questions,
            is_premium=limits.is_premium,
        )
        return ExamStartResult(
            exam_id=exam.id,
            total_questions=exam.total_questions,
            time_limit_minutes=exam.time_limit_minutes,
            passing_score=exam.passing_score,
            status=exam.status,
            started_at=exam.started_at,
            questions=[as_question_view(question) for question in questions],
        )

    @staticmethod
    async def record_answer(
        session: AsyncSession,
        *,
        exam_id: UUID,
        user_id: int,
        question_id: int,
        selected_option_id: str,
    ) -> None:
        exam = await _load_in_progress(session, exam_id=exam_id, user_id=user_id)
        if question_id not in exam.question_ids:
            raise QuestionNotInExamError

        question = await QuestionsRepo.get_by_id(session, question_id)
        if question is None or selected_option_id not in option_ids(question):
            raise InvalidOptionError

        exam.answers = {**exam.answers, str(question_id): selected_option_id}
        await session.flush()

    @staticmethod
    async def toggle_flag(
        session: AsyncSession,
        *,
        exam_id: UUID,
        user_id: int,
        question_id: int,
        flagged: bool,
    ) -> list[int]:
        exam = await _load_in_progress(session, exam_id=exam_id, user_id=user_id)
        if question_id not in exam.question_ids:
            raise QuestionNotInExamError

        current = [flagged_id for flagged_id in exam.flagged_question_ids if flagged_id != question_id]
        if flagged:
            current.append(question_id)
        exam.flagged_question_ids = current
        await session.flush()
        return list(current)

    @staticmethod
    async def submit(
        session: AsyncSession,
        *,
        exam_id: UUID,
        user_id: int,
        now_utc: datetime,
    ) -> ExamResults:
        exam = await _load_in_progress(session, exam_id=exam_id, user_id=user_id)
        questions = await _ordered_questions(session, exam)

        breakdown = score_exam(
            question_ids=exam.question_ids,
            answers=exam.answers,
            correct_option_by_id={question.id: question.correct_option_id for question in questions},
        )
        # a terminal status is what the monthly exam quota counts
        exam.status = ExamStatus.COMPLETED.value
        exam.completed_at = now_utc
        exam.score = breakdown.score
        await session.flush()

        results = _build_results(exam, questions)
        logger.info(
            "mock_exam_completed",
            user_id=user_id,
            exam_id=str(exam.id),
            score=results.score,
            passed=results.passed,
            unanswered=results.unanswered_questions,
        )
        return results

    @staticmethod
    async def abandon(
        session: AsyncSession,
        *,
        exam_id: UUID,
        user_id: int,
        now_utc: datetime,
    ) -> None:
        exam = await _load_in_progress(session, exam_id=exam_id, user_id=user_id)
        exam.status = ExamStatus.ABANDONED.value
        exam.completed_at = now_utc
        await session.flush()
        logger.info("mock_exam_abandoned", user_id=user_id, exam_id=str(exam.id), reason="user")

    @staticmethod
    async def get_state(
        session: AsyncSession,
        *,
        exam_id: UUID,
        user_id: int,
        now_utc: datetime,
    ) -> ExamState:
        exam = await _load_owned(session, exam_id=exam_id, user_id=user_id, for_update=False)
        questions = await _ordered_questions(session, exam)
        return _build_state(exam, questions, now_utc=now_utc)

    @staticmethod
    async def get_results(session: AsyncSession, *, exam_id: UUID, user_id: int) -> ExamResults:
        exam = await _load_owned(session, exam_id=exam_id, user_id=user_id, for_update=False)
        if exam.status != ExamStatus.COMPLETED.value:
            raise ExamNotCompletedError
        questions = await _ordered_questions(session, exam)
        return _build_results(exam, questions)

    @staticmethod
    async def get_in_progress(session: AsyncSession, *, user_id: int, now_utc: datetime) -> ExamState | None:
        exam = await MockExamSessionsRepo.get_in_progress_for_user(session, user_id=user_id)
        if exam is None:
            return None
        questions = await _ordered_questions(session, exam)
        return _build_state(exam, questions, now_utc=now_utc)

    @staticmethod
    async def history(
        session: AsyncSession,
        *,
        user_id: int,
        status: ExamStatus | None = None,
        limit: int = HISTORY_DEFAULT_LIMIT,
    ) -> ExamHistory:
        limit = max(1, min(limit, HISTORY_MAX_LIMIT))
        exams = await MockExamSessionsRepo.list_for_user(
            session,
            user_id=user_id,
            status=status.value if status is not None else None,
            limit=limit,
        )
        total_completed, score_sum, passed_total = await MockExamSessionsRepo.completed_summary(
            session,
            user_id=user_id,
        )
        items = [
            ExamHistoryItem(
                exam_id=exam.id,
                status=exam.status,
                total_questions=exam.total_questions,
                passing_score=exam.passing_score,
                score=exam.score,
                passed=(
                    is_passed(score=exam.score, passing_score=exam.passing_score)
                    if exam.score is not None
                    else None
                ),
                started_at=exam.started_at,
                completed_at=exam.completed_at,
            )
            for exam in exams
        ]
        return ExamHistory(
            exams=items,
            total_completed=total_completed,
            average_score=round_half_up_ratio(score_sum, total_completed),
            pass_rate=percent_half_up(passed_total, total_completed),
        )

    @staticmethod
    async def get_limits(session: AsyncSession, *, user_id: int, now_utc: datetime) -> ExamLimits:
        _, limits = await load_user_limits(session, user_id=user_id, now_utc=now_utc)
        used = await QuotaLedger.get_month_count(
            session,
            user_id=user_id,
            kind=UsageCounter.MOCK_EXAM,
            now_utc=now_utc,
        )
        return ExamLimits(
            is_premium=limits.is_premium,
            max_questions_per_exam=limits.exam_max_questions,
            exams_used_this_month=used,
            remaining_exams_this_month=remaining(limit=limits.exam_monthly_limit, used=used),
        )

    @staticmethod
    async def abandon_timed_out(session: AsyncSession, *, exam_ids: list[UUID], now_utc: datetime) -> int:
        abandoned = 0
        for exam_id in exam_ids:
            exam = await MockExamSessionsRepo.get_by_id_for_update(session, exam_id)
            if exam is None or exam.status != ExamStatus.IN_PROGRESS.value:
                continue
            exam.status = ExamStatus.ABANDONED.value
            exam.completed_at = now_utc
            abandoned += 1
            logger.info("mock_exam_abandoned", user_id=exam.user_id, exam_id=str(exam.id), reason="timed_out")
        await session.flush()
        return abandoned
