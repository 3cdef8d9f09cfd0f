# services/staff_auth.py
"""
Staff session verification against the hosted auth provider.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.config import get_settings
from api.app.errors import Forbidden, Unauthorized
from models.partner import Partner
from models.staff import Staff

logger = logging.getLogger(__name__)


@dataclass
class AuthUser:
    user_id: str
    email: str


def extract_token(authorization: str | None, cookie_token: str | None) -> str | None:
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    return cookie_token or None


def is_staff_email(email: str, domain: str) -> bool:
    """Exact domain match; subdomains do not count."""
    return email.strip().lower().endswith("@" + domain.strip().lower())


async def fetch_auth_user(token: str) -> AuthUser:
    settings = get_settings()
    url = f"{settings.supabase_url.rstrip('/')}/auth/v1/user"
    try:
        async with httpx.AsyncClient(timeout=settings.auth_timeout) as client:
            resp = await client.get(
                url,
                headers={"Authorization": f"Bearer {token}", "apikey": settings.supabase_anon_key},
            )
    except httpx.HTTPError as exc:
        logger.error("Auth provider unreachable: %s", exc)
        raise Unauthorized("Not authenticated") from exc

    if resp.status_code != 200:
        raise Unauthorized("Not authenticated")

    try:
        data = resp.json()
    except ValueError as exc:
        logger.error("Auth provider returned a non-JSON response")
        raise Unauthorized("Not authenticated") from exc
    email = data.get("email") if isinstance(data, dict) else None
    if not email:
        raise Unauthorized("Not authenticated")
    return AuthUser(user_id=str(data.get("id", "")), email=email.lower())


async def resolve_staff(db: AsyncSession, user: AuthUser) -> Staff:
    """Map an authenticated user to an active staff row."""
    settings = get_settings()
    if not is_staff_email(user.email, settings.staff_email_domain):
        result = await db.execute(select(Partner.id).where(Partner.email == user.email))
        if result.scalar_one_or_none() is None:
            logger.warning("Rejected non-staff login %s", user.email)
            raise Forbidden("Not staff or partner")

    result = await db.execute(
        select(Staff).where(Staff.email == user.email, Staff.is_active.is_(True))
    )
    staff = result.scalar_one_or_none()
    if staff is None:
        raise Forbidden("Staff account not found or inactive")
    return staff
