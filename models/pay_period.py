# models/pay_period.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Index, Integer, Numeric, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDPrimaryKey


class PayPeriod(Base, UUIDPrimaryKey, TimestampMixin):
    __tablename__ = "pay_periods"
    __table_args__ = (
        UniqueConstraint("start_date", "end_date", name="uq_pay_periods_window"),
        # at most one open period at a time
        Index(
            "uq_pay_periods_single_open",
            "status",
            unique=True,
            postgresql_where=text("status = 'open'"),
            sqlite_where=text("status = 'open'"),
        ),
    )

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="open")  # open | closed | paid

    # frozen at close time
    total_hours: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    total_pay_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)

    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
