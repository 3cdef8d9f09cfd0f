# models/partner.py
from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDPrimaryKey


class Partner(Base, UUIDPrimaryKey, TimestampMixin):
    __tablename__ = "partners"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)  # stored lower-case
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    active_roles: Mapped[list] = mapped_column(JSONB, default=list)
    designated_staff: Mapped[dict] = mapped_column(JSONB, default=dict)  # role -> staff id
    role_overrides: Mapped[dict] = mapped_column(JSONB, default=dict)  # role -> bool
