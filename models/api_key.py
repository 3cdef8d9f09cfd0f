# models/api_key.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, CreatedAtMixin, TimestampMixin, UUIDPrimaryKey


class ApiKey(Base, UUIDPrimaryKey, TimestampMixin):
    __tablename__ = "api_keys"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    key_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)  # sha256 hex
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    rate_limit_tier: Mapped[str] = mapped_column(String(32), default="default")
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ApiCacheEntry(Base, UUIDPrimaryKey, CreatedAtMixin):
    """Shared response cache for the v1 location endpoints."""

    __tablename__ = "api_cache"

    cache_key: Mapped[str] = mapped_column(String(512), unique=True, nullable=False)
    payload: Mapped[dict] = mapped_column(JSONB, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
