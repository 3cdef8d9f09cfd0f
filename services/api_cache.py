# services/api_cache.py
"""
Response cache for the public v1 endpoints, shared across API processes
through the api_cache table.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from models.api_key import ApiCacheEntry

logger = logging.getLogger(__name__)

COORDINATE_KEYS = ("lat", "lng")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_cache_key(endpoint: str, params: dict) -> str:
    """api:v1:{endpoint}:{k=v&...} with sorted keys and coordinates rounded to ~100 m."""
    parts = []
    for key in sorted(params):
        value = params[key]
        if value is None:
            continue
        if key in COORDINATE_KEYS:
            value = f"{float(value):.3f}"
        parts.append(f"{key}={value}")
    return f"api:v1:{endpoint}:{'&'.join(parts)}"


async def get_cached(db: AsyncSession, cache_key: str) -> dict | None:
    result = await db.execute(
        select(ApiCacheEntry.payload).where(
            ApiCacheEntry.cache_key == cache_key,
            ApiCacheEntry.expires_at > utcnow(),
        )
    )
    payload = result.scalar_one_or_none()
    logger.debug("Cache %s: %s", "hit" if payload is not None else "miss", cache_key)
    return payload


async def set_cached(db: AsyncSession, cache_key: str, payload: dict, ttl_seconds: int) -> None:
    expires_at = utcnow() + timedelta(seconds=ttl_seconds)
    stmt = insert(ApiCacheEntry).values(cache_key=cache_key, payload=payload, expires_at=expires_at)
    stmt = stmt.on_conflict_do_update(
        index_elements=[ApiCacheEntry.cache_key],
        set_={"payload": stmt.excluded.payload, "expires_at": stmt.excluded.expires_at},
    )
    await db.execute(stmt)


async def purge_expired(db: AsyncSession) -> int:
    result = await db.execute(delete(ApiCacheEntry).where(ApiCacheEntry.expires_at <= utcnow()))
    if result.rowcount:
        logger.info("Purged %d expired cache entries", result.rowcount)
    return result.rowcount or 0
