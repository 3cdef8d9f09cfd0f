# models/staff.py
from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDPrimaryKey

STAFF_ROLES = ("admin", "photographer", "editor", "qc", "va")
PAYOUT_TYPES = ("hourly", "1099", "w2")


class Staff(Base, UUIDPrimaryKey, TimestampMixin):
    __tablename__ = "staff"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False)  # admin | photographer | editor | qc | va
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    payout_type: Mapped[str] = mapped_column(String(16), default="1099")  # hourly | 1099 | w2
    hourly_rate: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)  # dollars
