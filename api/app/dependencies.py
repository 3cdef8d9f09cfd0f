# api/app/dependencies.py
from __future__ import annotations

from collections.abc import AsyncGenerator, Callable

from fastapi import Cookie, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.errors import Forbidden, RateLimited, Unauthorized
from db.session import get_db
from models.api_key import ApiKey
from models.staff import Staff
from services.api_keys import authenticate_api_key
from services.rate_limit import RateLimitResult, get_rate_limiter
from services.staff_auth import extract_token, fetch_auth_user, resolve_staff


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_db():
        yield session


async def get_current_staff(
    authorization: str | None = Header(None),
    sb_access_token: str | None = Cookie(None, alias="sb-access-token"),
    db: AsyncSession = Depends(get_session),
) -> Staff:
    """Authenticate a staff member from a bearer token or the session cookie."""
    token = extract_token(authorization, sb_access_token)
    if token is None:
        raise Unauthorized("Not authenticated")
    user = await fetch_auth_user(token)
    return await resolve_staff(db, user)


def require_roles(*roles: str) -> Callable:
    """Dependency that only lets staff with one of `roles` through."""

    async def _check(staff: Staff = Depends(get_current_staff)) -> Staff:
        if staff.role not in roles:
            raise Forbidden(f"Requires one of roles: {', '.join(roles)}")
        return staff

    return _check


async def get_api_key(
    x_api_key: str | None = Header(None, alias="X-API-Key"),
    db: AsyncSession = Depends(get_session),
) -> ApiKey:
    return await authenticate_api_key(db, x_api_key)


def rate_limited(tier: str) -> Callable:
    """Per-key fixed window limit for one endpoint tier."""

    async def _check(api_key: ApiKey = Depends(get_api_key)) -> RateLimitResult:
        result = get_rate_limiter().check(str(api_key.id), tier)
        if not result.success:
            raise RateLimited("Rate limit exceeded. Try again later.", headers=result.headers())
        return result

    return _check
