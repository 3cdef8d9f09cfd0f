# models/time_entry.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDPrimaryKey


class TimeEntry(Base, UUIDPrimaryKey, TimestampMixin):
    __tablename__ = "time_entries"
    __table_args__ = (
        # one running clock per staff member
        Index(
            "uq_time_entries_single_active",
            "staff_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    staff_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("staff.id"), nullable=False, index=True
    )

    # matched to a pay period by clock_in, not by foreign key
    clock_in: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    clock_out: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    break_minutes: Mapped[int] = mapped_column(Integer, default=0)
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)  # dollars
    total_pay_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)

    status: Mapped[str] = mapped_column(String(16), default="active")  # active | completed | approved
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
