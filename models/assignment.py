# models/assignment.py
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDPrimaryKey

# statuses that still count towards a staff member's workload
OPEN_PHOTOGRAPHER_STATUSES = ("pending", "confirmed", "in_progress")
OPEN_EDITOR_STATUSES = ("pending", "in_progress")


class PhotographerAssignment(Base, UUIDPrimaryKey, TimestampMixin):
    __tablename__ = "photographer_assignments"

    listing_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("listings.id", ondelete="CASCADE"), nullable=False
    )
    photographer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("staff.id"), nullable=False, index=True
    )
    # pending | confirmed | in_progress | completed | cancelled
    status: Mapped[str] = mapped_column(String(32), default="pending")
    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class EditorAssignment(Base, UUIDPrimaryKey, TimestampMixin):
    __tablename__ = "editor_assignments"

    listing_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("listings.id", ondelete="CASCADE"), nullable=False
    )
    editor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("staff.id"), nullable=False, index=True
    )
    # pending | in_progress | completed | cancelled
    status: Mapped[str] = mapped_column(String(32), default="pending")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
