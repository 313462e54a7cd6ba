from __future__ import annotations

from datetime import datetime, timedelta
from uuid import uuid4

from examprep.db.models.mock_exam_sessions import MockExamSession
from examprep.db.models.questions import Question
from examprep.db.models.season_pass_codes import SeasonPassCode
from examprep.db.models.users import User
from examprep.db.session import SessionLocal


async def create_user(*, email: str, is_premium: bool = False, premium_expiry: datetime | None = None) -> int:
    async with SessionLocal.begin() as session:
        user = User(
            email=email,
            password_hash="x",
            full_name="Integration",
            is_premium=is_premium,
            premium_expiry=premium_expiry,
        )
        session.add(user)
        await session.flush()
        return user.id


async def create_questions(count: int, *, category: str = "VERBAL_ABILITY", difficulty: str = "EASY") -> list[int]:
    async with SessionLocal.begin() as session:
        questions = [
            Question(
                category=category,
                difficulty=difficulty,
                question_text=f"Question {index}?",
                options=[{"id": "a", "text": "A"}, {"id": "b", "text": "B"}],
                correct_option_id="a",
                explanation="A is correct.",
            )
            for index in range(count)
        ]
        session.add_all(questions)
        await session.flush()
        return [question.id for question in questions]


async def create_exam(*, user_id: int, status: str, started_at: datetime, time_limit_minutes: int = 60) -> None:
    async with SessionLocal.begin() as session:
        session.add(
            MockExamSession(
                id=uuid4(),
                user_id=user_id,
                total_questions=1,
                time_limit_minutes=time_limit_minutes,
                passing_score=75,
                categories=[],
                difficulty=None,
                status=status,
                question_ids=[1],
                answers={},
                flagged_question_ids=[],
                score=100 if status == "COMPLETED" else None,
                started_at=started_at,
                completed_at=started_at + timedelta(minutes=10) if status != "IN_PROGRESS" else None,
            )
        )


async def create_code(*, code: str, now_utc: datetime, expires_at: datetime | None = None) -> None:
    async with SessionLocal.begin() as session:
        session.add(SeasonPassCode(code=code, batch_id="BATCH-IT", expires_at=expires_at, created_at=now_utc))
