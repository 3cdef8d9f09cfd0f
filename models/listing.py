# models/listing.py
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDPrimaryKey


class Listing(Base, UUIDPrimaryKey, TimestampMixin):
    """Ops record for a property shoot (the "job" on the ops board)."""

    __tablename__ = "listings"

    address: Mapped[str] = mapped_column(String(512), nullable=False)
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    state: Mapped[str | None] = mapped_column(String(32), nullable=True)
    zip: Mapped[str | None] = mapped_column(String(16), nullable=True)

    ops_status: Mapped[str] = mapped_column(String(32), default="pending", index=True)
    is_rush: Mapped[bool] = mapped_column(Boolean, default=False)

    photographer_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("staff.id"), nullable=True
    )
    editor_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("staff.id"), nullable=True
    )

    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    photographer = relationship("Staff", foreign_keys=[photographer_id], lazy="selectin")
    editor = relationship("Staff", foreign_keys=[editor_id], lazy="selectin")
