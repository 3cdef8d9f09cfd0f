# models/processing_job.py
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from api.app.config import get_settings
from models.base import Base, TimestampMixin, UUIDPrimaryKey


class ProcessingJob(Base, UUIDPrimaryKey, TimestampMixin):
    """One HDR bracket-fusion request sent to the external GPU worker."""

    __tablename__ = "processing_jobs"

    listing_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("listings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    external_job_id: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)

    # pending | queued | processing | completed | failed | cancelled
    status: Mapped[str] = mapped_column(String(32), default="pending", index=True)

    input_keys: Mapped[list] = mapped_column(JSONB, default=list)
    bracket_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    output_key: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    queued_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    processing_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)

    metrics: Mapped[dict] = mapped_column(JSONB, default=dict)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Retry control
    retry_count: Mapped[int] = mapped_column(Integer, default=0)
    max_retries: Mapped[int] = mapped_column(
        Integer, default=lambda: get_settings().processing_max_retries
    )
    last_retry_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    can_retry: Mapped[bool | None] = mapped_column(Boolean, nullable=True)  # False = poison pill

    webhook_received_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
