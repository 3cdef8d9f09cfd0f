# services/api_keys.py
from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.errors import Unauthorized
from models.api_key import ApiKey

logger = logging.getLogger(__name__)

KEY_PREFIX = "lh_"


def hash_api_key(raw_key: str) -> str:
    return hashlib.sha256(raw_key.encode("utf-8")).hexdigest()


def generate_api_key() -> str:
    return KEY_PREFIX + secrets.token_urlsafe(32)


async def authenticate_api_key(db: AsyncSession, raw_key: str | None) -> ApiKey:
    """Resolve an X-API-Key header to an active key row, touching last_used_at."""
    if not raw_key:
        raise Unauthorized("API key required. Pass it in the X-API-Key header.")

    result = await db.execute(
        select(ApiKey).where(ApiKey.key_hash == hash_api_key(raw_key), ApiKey.is_active.is_(True))
    )
    api_key = result.scalar_one_or_none()
    if api_key is None:
        logger.warning("Rejected invalid API key %s...", raw_key[:6])
        raise Unauthorized("Invalid API key")

    api_key.last_used_at = datetime.now(timezone.utc)
    await db.flush()
    return api_key
