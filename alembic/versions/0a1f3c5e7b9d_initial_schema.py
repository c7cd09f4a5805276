"""initial_schema

Revision ID: 0a1f3c5e7b9d
Revises:
Create Date: 2026-10-12 00:00:00.000000

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0a1f3c5e7b9d"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(*, updated: bool = True) -> list:
    columns = [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]
    if updated:
        columns.append(
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )
    return columns


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("display_name", sa.String(), nullable=True),
        sa.Column("language_selected", sa.String(), nullable=False, server_default="en"),
        sa.Column("notifications_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("fcm_token", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "itineraries",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("document", postgresql.JSONB(), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_itineraries_user_id", "itineraries", ["user_id"])

    op.create_table(
        "prompt_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("category", sa.String(), nullable=False, server_default="travel"),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("prompt_type", sa.String(), nullable=False),
        sa.Column("session_id", sa.String(), nullable=True),
        sa.Column("user_request", sa.Text(), nullable=False),
        sa.Column("prompt_text", sa.Text(), nullable=False),
        sa.Column("llm_response", sa.Text(), nullable=False),
        sa.Column("token_usage", postgresql.JSONB(), nullable=False),
        sa.Column("ai_config", postgresql.JSONB(), nullable=False),
        sa.Column("performance", postgresql.JSONB(), nullable=False),
        sa.Column("food_metadata", postgresql.JSONB(), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_prompt_logs_category", "prompt_logs", ["category"])
    op.create_index("ix_prompt_logs_user_id", "prompt_logs", ["user_id"])
    op.create_index("ix_prompt_logs_prompt_type", "prompt_logs", ["prompt_type"])
    op.create_index("ix_prompt_logs_session_id", "prompt_logs", ["session_id"])

    op.create_table(
        "ai_error_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("prompt_type", sa.String(), nullable=False),
        sa.Column("session_id", sa.String(), nullable=True),
        sa.Column("error_code", sa.String(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=False),
        sa.Column("user_request", sa.Text(), nullable=False),
        sa.Column("prompt_text", sa.Text(), nullable=False),
        sa.Column("performance", postgresql.JSONB(), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_ai_error_logs_user_id", "ai_error_logs", ["user_id"])

    op.create_table(
        "usage_stats",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("date", sa.String(), nullable=False),
        sa.Column("total_tokens", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("prompt_tokens", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completion_tokens", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("image_analysis_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("request_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_usage_stats_user_id", "usage_stats", ["user_id"])

    op.create_table(
        "meals",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("meal_name", sa.String(), nullable=False),
        sa.Column("meal_type", sa.String(), nullable=False),
        sa.Column("ingredients", postgresql.JSONB(), nullable=False),
        sa.Column("nutrition", postgresql.JSONB(), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("image_path", sa.String(), nullable=False),
        sa.Column("source", sa.String(), nullable=False, server_default="ai_detection"),
        sa.Column("tags", postgresql.JSONB(), nullable=False),
        sa.Column("search_keywords", postgresql.JSONB(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_meals_user_id", "meals", ["user_id"])

    op.create_table(
        "user_stats",
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("total_meals", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_calories", sa.Float(), nullable=False, server_default="0"),
        sa.Column("meals_by_type", postgresql.JSONB(), nullable=False),
        sa.Column("last_meal_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("user_id"),
    )

    op.create_table(
        "analysis_sessions",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("mode", sa.String(), nullable=False),
        sa.Column("storage_path", sa.String(), nullable=True),
        sa.Column("language", sa.String(), nullable=False, server_default="en"),
        sa.Column("unit_system", sa.String(), nullable=False, server_default="metric"),
        sa.Column("result", postgresql.JSONB(), nullable=False),
        sa.Column("saved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("saved_meal_id", sa.String(), nullable=True),
        sa.Column("saved_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_analysis_sessions_user_id", "analysis_sessions", ["user_id"])

    op.create_table(
        "promo_codes",
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        sa.Column("type", sa.String(), nullable=False, server_default="single_use"),
        sa.Column("max_uses", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("used_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("entitlement_id", sa.String(), nullable=False, server_default="Pro"),
        sa.Column("duration_days", sa.Integer(), nullable=False, server_default="365"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reserved_for", sa.String(), nullable=True),
        sa.Column("reserved_by", sa.String(), nullable=True),
        sa.Column("reserved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("created_by_email", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("code"),
    )
    op.create_index("ix_promo_codes_status_created_at", "promo_codes", ["status", "created_at"])

    op.create_table(
        "promo_redemptions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("used_by", sa.String(), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("revenuecat_grant_id", sa.String(), nullable=True),
        sa.Column("success", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["code"], ["promo_codes.code"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_promo_redemptions_code", "promo_redemptions", ["code"])
    op.create_index("ix_promo_redemptions_used_by", "promo_redemptions", ["used_by"])

    op.create_table(
        "admin_audit_log",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("admin_id", sa.String(), nullable=False),
        sa.Column("admin_email", sa.String(), nullable=True),
        sa.Column("target", sa.String(), nullable=True),
        sa.Column("details", postgresql.JSONB(), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_admin_audit_log_action", "admin_audit_log", ["action"])

    op.create_table(
        "notification_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=True),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("language", sa.String(), nullable=True),
        sa.Column("date", sa.String(), nullable=False),
        sa.Column("success", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("message_id", sa.String(), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("processing_time_ms", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notification_logs_user_id", "notification_logs", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_notification_logs_user_id", table_name="notification_logs")
    op.drop_table("notification_logs")
    op.drop_index("ix_admin_audit_log_action", table_name="admin_audit_log")
    op.drop_table("admin_audit_log")
    op.drop_index("ix_promo_redemptions_used_by", table_name="promo_redemptions")
    op.drop_index("ix_promo_redemptions_code", table_name="promo_redemptions")
    op.drop_table("promo_redemptions")
    op.drop_index("ix_promo_codes_status_created_at", table_name="promo_codes")
    op.drop_table("promo_codes")
    op.drop_index("ix_analysis_sessions_user_id", table_name="analysis_sessions")
    op.drop_table("analysis_sessions")
    op.drop_table("user_stats")
    op.drop_index("ix_meals_user_id", table_name="meals")
    op.drop_table("meals")
    op.drop_index("ix_usage_stats_user_id", table_name="usage_stats")
    op.drop_table("usage_stats")
    op.drop_index("ix_ai_error_logs_user_id", table_name="ai_error_logs")
    op.drop_table("ai_error_logs")
    op.drop_index("ix_prompt_logs_session_id", table_name="prompt_logs")
    op.drop_index("ix_prompt_logs_prompt_type", table_name="prompt_logs")
    op.drop_index("ix_prompt_logs_user_id", table_name="prompt_logs")
    op.drop_index("ix_prompt_logs_category", table_name="prompt_logs")
    op.drop_table("prompt_logs")
    op.drop_index("ix_itineraries_user_id", table_name="itineraries")
    op.drop_table("itineraries")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
