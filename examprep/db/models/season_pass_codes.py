from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, CheckConstraint, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from examprep.db.models.base import Base


class SeasonPassCode(Base):
    __tablename__ = "season_pass_codes"
    __table_args__ = (
        CheckConstraint(
            "(is_redeemed = false AND redeemed_by_user_id IS NULL AND redeemed_at IS NULL)"
            " OR (is_redeemed = true AND redeemed_by_user_id IS NOT NULL AND redeemed_at IS NOT NULL)",
            name="ck_season_pass_codes_redemption_consistent",
        ),
        Index("idx_season_pass_codes_batch", "batch_id"),
        Index("idx_season_pass_codes_redeemed", "is_redeemed"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    code: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    is_redeemed: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    redeemed_by_user_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    redeemed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    batch_id: Mapped[str] = mapped_column(String(64), nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
