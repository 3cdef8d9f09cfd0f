"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-01 00:00:00.000000
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "001"
down_revision = None
branch_labels = None
depends_on = None

UUID = postgresql.UUID(as_uuid=True)
JSONB = postgresql.JSONB


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # ── staff ──
    op.create_table(
        "staff",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("role", sa.String(32), nullable=False),
        sa.Column("is_active", sa.Boolean, server_default=sa.true()),
        sa.Column("payout_type", sa.String(16), server_default="1099"),
        sa.Column("hourly_rate", sa.Numeric(8, 2), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("role IN ('admin','photographer','editor','qc','va')", name="ck_staff_role"),
    )

    # ── listings ──
    op.create_table(
        "listings",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("address", sa.String(512), nullable=False),
        sa.Column("city", sa.String(128), nullable=True),
        sa.Column("state", sa.String(32), nullable=True),
        sa.Column("zip", sa.String(16), nullable=True),
        sa.Column("ops_status", sa.String(32), server_default="pending"),
        sa.Column("is_rush", sa.Boolean, server_default=sa.false()),
        sa.Column("photographer_id", UUID, sa.ForeignKey("staff.id"), nullable=True),
        sa.Column("editor_id", UUID, sa.ForeignKey("staff.id"), nullable=True),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "ops_status IN ('pending','scheduled','in_progress','staged','awaiting_editing',"
            "'in_editing','ready_for_qc','in_qc','delivered','cancelled')",
            name="ck_listings_ops_status",
        ),
    )
    op.create_index("ix_listings_ops_status", "listings", ["ops_status"])

    # ── job_events ──
    op.create_table(
        "job_events",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("listing_id", UUID, sa.ForeignKey("listings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("event_type", sa.String(64), nullable=False),
        sa.Column("old_value", JSONB, nullable=True),
        sa.Column("new_value", JSONB, nullable=True),
        sa.Column("actor_id", UUID, nullable=True),
        sa.Column("actor_type", sa.String(16), server_default="staff"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_job_events_listing_id", "job_events", ["listing_id"])

    # ── assignments ──
    op.create_table(
        "photographer_assignments",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("listing_id", UUID, sa.ForeignKey("listings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("photographer_id", UUID, sa.ForeignKey("staff.id"), nullable=False),
        sa.Column("status", sa.String(32), server_default="pending"),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_photographer_assignments_staff", "photographer_assignments", ["photographer_id", "status"])

    op.create_table(
        "editor_assignments",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("listing_id", UUID, sa.ForeignKey("listings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("editor_id", UUID, sa.ForeignKey("staff.id"), nullable=False),
        sa.Column("status", sa.String(32), server_default="pending"),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_editor_assignments_staff", "editor_assignments", ["editor_id", "status"])

    # ── time_entries ──
    op.create_table(
        "time_entries",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("staff_id", UUID, sa.ForeignKey("staff.id"), nullable=False),
        sa.Column("clock_in", sa.DateTime(timezone=True), nullable=False),
        sa.Column("clock_out", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_minutes", sa.Integer, nullable=True),
        sa.Column("break_minutes", sa.Integer, server_default="0"),
        sa.Column("hourly_rate", sa.Numeric(8, 2), nullable=False),
        sa.Column("total_pay_cents", sa.Integer, nullable=True),
        sa.Column("status", sa.String(16), server_default="active"),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_time_entries_staff_id", "time_entries", ["staff_id"])
    op.create_index("ix_time_entries_clock_in", "time_entries", ["clock_in"])
    # one running clock per staff member
    op.create_index(
        "uq_time_entries_single_active",
        "time_entries",
        ["staff_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )

    # ── pay_periods ──
    op.create_table(
        "pay_periods",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("status", sa.String(16), server_default="open"),
        sa.Column("total_hours", sa.Numeric(10, 2), nullable=True),
        sa.Column("total_pay_cents", sa.Integer, nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("start_date", "end_date", name="uq_pay_periods_window"),
    )
    op.create_index(
        "uq_pay_periods_single_open",
        "pay_periods",
        ["status"],
        unique=True,
        postgresql_where=sa.text("status = 'open'"),
    )

    # ── processing_jobs ──
    op.create_table(
        "processing_jobs",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("listing_id", UUID, sa.ForeignKey("listings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("external_job_id", sa.String(128), nullable=True),
        sa.Column("status", sa.String(32), server_default="pending"),
        sa.Column("input_keys", JSONB, server_default="[]"),
        sa.Column("bracket_count", sa.Integer, nullable=True),
        sa.Column("output_key", sa.String(1024), nullable=True),
        sa.Column("queued_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processing_time_ms", sa.Integer, nullable=True),
        sa.Column("metrics", JSONB, server_default="{}"),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("retry_count", sa.Integer, server_default="0"),
        sa.Column("max_retries", sa.Integer, server_default="3"),
        sa.Column("last_retry_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("can_retry", sa.Boolean, nullable=True),
        sa.Column("webhook_received_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_processing_jobs_listing_id", "processing_jobs", ["listing_id"])
    op.create_index("ix_processing_jobs_status", "processing_jobs", ["status"])
    op.create_index("ix_processing_jobs_external_job_id", "processing_jobs", ["external_job_id"])

    # ── media_assets ──
    op.create_table(
        "media_assets",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("listing_id", UUID, sa.ForeignKey("listings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("processing_job_id", UUID, sa.ForeignKey("processing_jobs.id"), nullable=True),
        sa.Column("media_type", sa.String(32), server_default="photo"),
        sa.Column("storage_path", sa.String(1024), nullable=True),
        sa.Column("qc_status", sa.String(32), server_default="pending"),
        *_timestamps(),
    )
    op.create_index("ix_media_assets_listing_id", "media_assets", ["listing_id"])
    op.create_index("ix_media_assets_processing_job_id", "media_assets", ["processing_job_id"])

    # ── partners ──
    op.create_table(
        "partners",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("active_roles", JSONB, server_default="[]"),
        sa.Column("designated_staff", JSONB, server_default="{}"),
        sa.Column("role_overrides", JSONB, server_default="{}"),
        *_timestamps(),
    )

    # ── api_keys / api_cache ──
    op.create_table(
        "api_keys",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("key_hash", sa.String(64), unique=True, nullable=False),
        sa.Column("is_active", sa.Boolean, server_default=sa.true()),
        sa.Column("rate_limit_tier", sa.String(32), server_default="default"),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        "api_cache",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("cache_key", sa.String(512), unique=True, nullable=False),
        sa.Column("payload", JSONB, nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_api_cache_expires_at", "api_cache", ["expires_at"])

    # ── jobs ──
    op.create_table(
        "jobs",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("job_type", sa.String(64), nullable=False),
        sa.Column("status", sa.String(32), server_default="pending"),
        sa.Column("payload", JSONB, server_default="{}"),
        sa.Column("result", JSONB, nullable=True),
        sa.Column("error", sa.Text, nullable=True),
        sa.Column("attempts", sa.Integer, server_default="0"),
        sa.Column("max_attempts", sa.Integer, server_default="3"),
        sa.Column("locked_by", sa.String(128), nullable=True),
        sa.Column("locked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("run_after", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("trace_id", UUID, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_jobs_status_pending", "jobs", ["status"], postgresql_where=sa.text("status = 'pending'"))
    op.create_index("ix_jobs_run_after", "jobs", ["run_after"])

    # ── events ──
    op.create_table(
        "events",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("event_type", sa.String(128), nullable=False),
        sa.Column("level", sa.String(16), server_default="info"),
        sa.Column("source", sa.String(128), nullable=True),
        sa.Column("actor_id", UUID, nullable=True),
        sa.Column("message", sa.Text, nullable=True),
        sa.Column("metadata", JSONB, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_events_type", "events", ["event_type"])


def downgrade() -> None:
    for table in [
        "events", "jobs", "api_cache", "api_keys", "partners",
        "media_assets", "processing_jobs", "pay_periods", "time_entries",
        "editor_assignments", "photographer_assignments", "job_events",
        "listings", "staff",
    ]:
        op.drop_table(table)
