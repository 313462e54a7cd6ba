from __future__ import annotations

from datetime import date

from sqlalchemy import BigInteger, CheckConstraint, Date, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from examprep.db.models.base import Base


class DailyPracticeUsage(Base):
    __tablename__ = "daily_practice_usage"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_practice_usage_user_date"),
        CheckConstraint("questions_count >= 0", name="ck_daily_practice_usage_count_non_negative"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    questions_count: Mapped[int] = mapped_column(Integer, nullable=False)


class DailyExplanationView(Base):
    __tablename__ = "daily_explanation_views"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_explanation_views_user_date"),
        CheckConstraint("view_count >= 0", name="ck_daily_explanation_views_count_non_negative"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, nullable=False)
