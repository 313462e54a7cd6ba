from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from examprep.db.models.base import Base


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        CheckConstraint(
            "category IN ('VERBAL_ABILITY','NUMERICAL_ABILITY','ANALYTICAL_ABILITY',"
            "'GENERAL_INFORMATION','CLERICAL_ABILITY')",
            name="ck_questions_category",
        ),
        CheckConstraint("difficulty IN ('EASY','MEDIUM','HARD')", name="ck_questions_difficulty"),
        Index("idx_questions_category_difficulty", "category", "difficulty"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    difficulty: Mapped[str] = mapped_column(String(8), nullable=False)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    # [{"id": "a", "text": "..."}, ...] in display order
    options: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False)
    correct_option_id: Mapped[str] = mapped_column(String(8), nullable=False)
    explanation: Mapped[str] = mapped_column(Text, nullable=False)
    ai_explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
