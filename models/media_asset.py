# models/media_asset.py
from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDPrimaryKey


class MediaAsset(Base, UUIDPrimaryKey, TimestampMixin):
    __tablename__ = "media_assets"

    listing_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("listings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    processing_job_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("processing_jobs.id"), nullable=True, index=True
    )
    media_type: Mapped[str] = mapped_column(String(32), default="photo")
    storage_path: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    # pending | processing | ready_for_qc | in_review | approved | rejected | needs_edit
    qc_status: Mapped[str] = mapped_column(String(32), default="pending")
