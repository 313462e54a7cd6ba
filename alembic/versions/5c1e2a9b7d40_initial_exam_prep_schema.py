"""initial_exam_prep_schema

Revision ID: 5c1e2a9b7d40
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5c1e2a9b7d40"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("role", sa.String(16), nullable=False, server_default=sa.text("'USER'")),
        sa.Column("is_premium", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("premium_expiry", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("role IN ('USER','ADMIN')", name="ck_users_role"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("idx_users_premium_expiry", "users", ["premium_expiry"])

    op.create_table(
        "questions",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("category", sa.String(32), nullable=False),
        sa.Column("difficulty", sa.String(8), nullable=False),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("options", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("correct_option_id", sa.String(8), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=False),
        sa.Column("ai_explanation", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "category IN ('VERBAL_ABILITY','NUMERICAL_ABILITY','ANALYTICAL_ABILITY',"
            "'GENERAL_INFORMATION','CLERICAL_ABILITY')",
            name="ck_questions_category",
        ),
        sa.CheckConstraint("difficulty IN ('EASY','MEDIUM','HARD')", name="ck_questions_difficulty"),
    )
    op.create_index("idx_questions_category_difficulty", "questions", ["category", "difficulty"])

    op.create_table(
        "mock_exam_sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("total_questions", sa.Integer(), nullable=False),
        sa.Column("time_limit_minutes", sa.Integer(), nullable=False),
        sa.Column("passing_score", sa.SmallInteger(), nullable=False),
        sa.Column("categories", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("difficulty", sa.String(8), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("question_ids", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("answers", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("flagged_question_ids", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("score", sa.SmallInteger(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('IN_PROGRESS','COMPLETED','ABANDONED')", name="ck_mock_exam_sessions_status"),
        sa.CheckConstraint("total_questions > 0", name="ck_mock_exam_sessions_total_positive"),
        sa.CheckConstraint("passing_score BETWEEN 0 AND 100", name="ck_mock_exam_sessions_passing_score"),
        sa.CheckConstraint("score IS NULL OR score BETWEEN 0 AND 100", name="ck_mock_exam_sessions_score_range"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_mock_exam_sessions_user_started", "mock_exam_sessions", ["user_id", "started_at"])
    op.create_index("idx_mock_exam_sessions_status_started", "mock_exam_sessions", ["status", "started_at"])
    op.create_index(
        "uq_mock_exam_sessions_user_in_progress",
        "mock_exam_sessions",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("status = 'IN_PROGRESS'"),
    )

    op.create_table(
        "daily_practice_usage",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("questions_count", sa.Integer(), nullable=False),
        sa.CheckConstraint("questions_count >= 0", name="ck_daily_practice_usage_count_non_negative"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "date", name="uq_daily_practice_usage_user_date"),
    )

    op.create_table(
        "daily_explanation_views",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("view_count", sa.Integer(), nullable=False),
        sa.CheckConstraint("view_count >= 0", name="ck_daily_explanation_views_count_non_negative"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "date", name="uq_daily_explanation_views_user_date"),
    )

    op.create_table(
        "user_streaks",
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("current_streak", sa.Integer(), nullable=False),
        sa.Column("longest_streak", sa.Integer(), nullable=False),
        sa.Column("last_activity_date", sa.Date(), nullable=True),
        sa.Column("streak_repaired_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("current_streak >= 0", name="ck_user_streaks_current_non_negative"),
        sa.CheckConstraint("longest_streak >= current_streak", name="ck_user_streaks_longest_gte_current"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id"),
    )

    op.create_table(
        "subscriptions",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("plan_name", sa.String(64), nullable=False, server_default=sa.text("'Season Pass'")),
        sa.Column("plan_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("amount_paid", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_method", sa.String(32), nullable=False),
        sa.Column("payment_provider", sa.String(32), nullable=False),
        sa.Column("transaction_id", sa.String(128), nullable=True),
        sa.Column("reference_number", sa.String(128), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'active'")),
        sa.Column("purchase_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("status IN ('active','expired','cancelled')", name="ck_subscriptions_status"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", name="uq_subscriptions_user_id"),
    )
    op.create_index("idx_subscriptions_reference_number", "subscriptions", ["reference_number"])
    op.create_index("idx_subscriptions_status_expires", "subscriptions", ["status", "expires_at"])

    op.create_table(
        "season_pass_codes",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("code", sa.String(16), nullable=False),
        sa.Column("is_redeemed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("redeemed_by_user_id", sa.BigInteger(), nullable=True),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("batch_id", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "(is_redeemed = false AND redeemed_by_user_id IS NULL AND redeemed_at IS NULL)"
            " OR (is_redeemed = true AND redeemed_by_user_id IS NOT NULL AND redeemed_at IS NOT NULL)",
            name="ck_season_pass_codes_redemption_consistent",
        ),
        sa.ForeignKeyConstraint(["redeemed_by_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("code", name="uq_season_pass_codes_code"),
    )
    op.create_index("idx_season_pass_codes_batch", "season_pass_codes", ["batch_id"])
    op.create_index("idx_season_pass_codes_redeemed", "season_pass_codes", ["is_redeemed"])

    op.create_table(
        "payment_verifications",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_method", sa.String(32), nullable=False),
        sa.Column("reference_number", sa.String(128), nullable=False),
        sa.Column("proof_image_url", sa.Text(), nullable=True),
        sa.Column("gcash_number", sa.String(32), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("verified_by_user_id", sa.BigInteger(), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("activation_code", sa.String(20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("status IN ('pending','approved','rejected')", name="ck_payment_verifications_status"),
        sa.CheckConstraint("amount > 0", name="ck_payment_verifications_amount_positive"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["verified_by_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("activation_code", name="uq_payment_verifications_activation_code"),
    )
    op.create_index("idx_payment_verifications_user", "payment_verifications", ["user_id"])
    op.create_index("idx_payment_verifications_status_created", "payment_verifications", ["status", "created_at"])


def downgrade() -> None:
    op.drop_index("idx_payment_verifications_status_created", table_name="payment_verifications")
    op.drop_index("idx_payment_verifications_user", table_name="payment_verifications")
    op.drop_table("payment_verifications")
    op.drop_index("idx_season_pass_codes_redeemed", table_name="season_pass_codes")
    op.drop_index("idx_season_pass_codes_batch", table_name="season_pass_codes")
    op.drop_table("season_pass_codes")
    op.drop_index("idx_subscriptions_status_expires", table_name="subscriptions")
    op.drop_index("idx_subscriptions_reference_number", table_name="subscriptions")
    op.drop_table("subscriptions")
    op.drop_table("user_streaks")
    op.drop_table("daily_explanation_views")
    op.drop_table("daily_practice_usage")
    op.drop_index("uq_mock_exam_sessions_user_in_progress", table_name="mock_exam_sessions")
    op.drop_index("idx_mock_exam_sessions_status_started", table_name="mock_exam_sessions")
    op.drop_index("idx_mock_exam_sessions_user_started", table_name="mock_exam_sessions")
    op.drop_table("mock_exam_sessions")
    op.drop_index("idx_questions_category_difficulty", table_name="questions")
    op.drop_table("questions")
    op.drop_index("idx_users_premium_expiry", table_name="users")
    op.drop_table("users")
