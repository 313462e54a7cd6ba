from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, Integer, SmallInteger, String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from examprep.db.models.base import Base


class MockExamSession(Base):
    __tablename__ = "mock_exam_sessions"
    __table_args__ = (
        CheckConstraint(
            "status IN ('IN_PROGRESS','COMPLETED','ABANDONED')",
            name="ck_mock_exam_sessions_status",
        ),
        CheckConstraint("total_questions > 0", name="ck_mock_exam_sessions_total_positive"),
        CheckConstraint("passing_score BETWEEN 0 AND 100", name="ck_mock_exam_sessions_passing_score"),
        CheckConstraint(
            "score IS NULL OR score BETWEEN 0 AND 100",
            name="ck_mock_exam_sessions_score_range",
        ),
        Index("idx_mock_exam_sessions_user_started", "user_id", "started_at"),
        Index("idx_mock_exam_sessions_status_started", "status", "started_at"),
        Index(
            "uq_mock_exam_sessions_user_in_progress",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'IN_PROGRESS'"),
        ),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    time_limit_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    passing_score: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    # explicit category list, or ["MIXED"]
    categories: Mapped[list[str]] = mapped_column(JSONB, nullable=False)
    difficulty: Mapped[str | None] = mapped_column(String(8), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    question_ids: Mapped[list[int]] = mapped_column(JSONB, nullable=False)
    # question id (as str, JSON keys) -> selected option id
    answers: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    flagged_question_ids: Mapped[list[int]] = mapped_column(JSONB, nullable=False)
    score: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
