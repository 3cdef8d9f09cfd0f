# services/partner_roles.py
"""
Partner role resolution.

A partner can hold several field roles. When the company designates one of
its own staff for a role, the partner's copy of that role is switched off
automatically unless an explicit override keeps it on.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.errors import NotFound, ValidationFailed
from models.partner import Partner
from models.staff import Staff

logger = logging.getLogger(__name__)

VALID_PARTNER_ROLES = ("photographer", "videographer", "qc", "va")


@dataclass
class RoleStatus:
    role: str
    is_active: bool
    has_designated_staff: bool
    designated_staff_id: str | None
    designated_staff_name: str | None
    is_overridden: bool
    effectively_active: bool


def validate_role(role: str) -> str:
    if role not in VALID_PARTNER_ROLES:
        raise ValidationFailed(
            f"Invalid role '{role}'. Must be one of: {', '.join(VALID_PARTNER_ROLES)}"
        )
    return role


def should_auto_disable_role(designated_staff: dict, role_overrides: dict, role: str) -> bool:
    return bool(designated_staff.get(role)) and not role_overrides.get(role)


def get_effective_roles(active_roles: list[str], designated_staff: dict, role_overrides: dict) -> list[str]:
    return [
        role for role in active_roles
        if not should_auto_disable_role(designated_staff, role_overrides, role)
    ]


def build_role_statuses(partner: Partner, staff_names: dict[str, str]) -> list[RoleStatus]:
    active = partner.active_roles or []
    designated = partner.designated_staff or {}
    overrides = partner.role_overrides or {}

    statuses = []
    for role in VALID_PARTNER_ROLES:
        is_active = role in active
        staff_id = designated.get(role) or None
        is_overridden = bool(overrides.get(role))
        statuses.append(
            RoleStatus(
                role=role,
                is_active=is_active,
                has_designated_staff=staff_id is not None,
                designated_staff_id=staff_id,
                designated_staff_name=staff_names.get(staff_id) if staff_id else None,
                is_overridden=is_overridden,
                effectively_active=is_active and (staff_id is None or is_overridden),
            )
        )
    return statuses


async def get_partner(db: AsyncSession, partner_id: uuid.UUID) -> Partner:
    partner = await db.get(Partner, partner_id)
    if partner is None:
        raise NotFound("Partner not found")
    return partner


async def get_partner_by_email(db: AsyncSession, email: str) -> Partner | None:
    result = await db.execute(select(Partner).where(Partner.email == email.strip().lower()))
    return result.scalar_one_or_none()


def _parse_staff_ids(values) -> list[uuid.UUID]:
    ids = []
    for value in values:
        try:
            ids.append(uuid.UUID(str(value)))
        except ValueError:
            logger.warning("Ignoring malformed designated staff id %r", value)
    return ids


async def get_role_statuses(db: AsyncSession, email: str) -> list[RoleStatus]:
    partner = await get_partner_by_email(db, email)
    if partner is None:
        raise NotFound("Partner not found")

    staff_ids = _parse_staff_ids(v for v in (partner.designated_staff or {}).values() if v)
    staff_names: dict[str, str] = {}
    if staff_ids:
        result = await db.execute(select(Staff.id, Staff.name).where(Staff.id.in_(staff_ids)))
        staff_names = {str(sid): name for sid, name in result.all()}

    return build_role_statuses(partner, staff_names)


async def can_access_role(db: AsyncSession, email: str, role: str) -> bool:
    partner = await get_partner_by_email(db, email)
    if partner is None:
        return False
    active = partner.active_roles or []
    if role not in active:
        return False
    return role in get_effective_roles(active, partner.designated_staff or {}, partner.role_overrides or {})


async def assign_designated_staff(
    db: AsyncSession,
    partner_id: uuid.UUID,
    role: str,
    staff_id: uuid.UUID | None,
) -> Partner:
    validate_role(role)
    partner = await get_partner(db, partner_id)

    designated = dict(partner.designated_staff or {})
    if staff_id is not None:
        staff = await db.get(Staff, staff_id)
        if staff is None:
            raise NotFound("Staff member not found")
        designated[role] = str(staff_id)
    else:
        designated.pop(role, None)

    # JSONB columns need a new object to register as changed
    partner.designated_staff = designated
    await db.flush()
    logger.info("Partner %s designated staff for %s -> %s", partner.id, role, staff_id)
    return partner


async def toggle_role(db: AsyncSession, partner_id: uuid.UUID, role: str, enabled: bool) -> Partner:
    validate_role(role)
    partner = await get_partner(db, partner_id)

    roles = list(partner.active_roles or [])
    overrides = dict(partner.role_overrides or {})
    if enabled:
        if role not in roles:
            roles.append(role)
    else:
        roles = [r for r in roles if r != role]
        overrides.pop(role, None)

    partner.active_roles = roles
    partner.role_overrides = overrides
    await db.flush()
    logger.info("Partner %s role %s %s", partner.id, role, "enabled" if enabled else "disabled")
    return partner


async def set_role_override(db: AsyncSession, partner_id: uuid.UUID, role: str, override: bool) -> Partner:
    validate_role(role)
    partner = await get_partner(db, partner_id)

    overrides = dict(partner.role_overrides or {})
    if override:
        overrides[role] = True
    else:
        overrides.pop(role, None)

    partner.role_overrides = overrides
    await db.flush()
    logger.info("Partner %s override for %s set to %s", partner.id, role, override)
    return partner
