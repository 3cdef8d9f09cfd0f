# api/app/routes/partners.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.dependencies import get_current_staff, get_session, require_roles
from api.app.schemas.partners import (
    DesignatedStaffRequest,
    PartnerResponse,
    PartnerRolesResponse,
    RoleOverrideRequest,
    RoleStatusResponse,
    ToggleRoleRequest,
)
from models.partner import Partner
from models.staff import Staff
from services import partner_roles

router = APIRouter(prefix="/admin/partners", tags=["partners"])


def _partner_response(partner: Partner) -> PartnerResponse:
    active = partner.active_roles or []
    designated = partner.designated_staff or {}
    overrides = partner.role_overrides or {}
    return PartnerResponse(
        id=partner.id,
        email=partner.email,
        name=partner.name,
        active_roles=active,
        designated_staff=designated,
        role_overrides=overrides,
        effective_roles=partner_roles.get_effective_roles(active, designated, overrides),
    )


@router.get("/roles", response_model=PartnerRolesResponse)
async def role_statuses(
    email: str = Query(..., min_length=3),
    staff: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_session),
):
    statuses = await partner_roles.get_role_statuses(db, email)
    return PartnerRolesResponse(
        email=email.strip().lower(),
        roles=[RoleStatusResponse.model_validate(s) for s in statuses],
    )


@router.put("/{partner_id}/roles/{role}", response_model=PartnerResponse)
async def toggle_role(
    partner_id: uuid.UUID,
    role: str,
    body: ToggleRoleRequest,
    staff: Staff = Depends(require_roles("admin")),
    db: AsyncSession = Depends(get_session),
):
    partner = await partner_roles.toggle_role(db, partner_id, role, body.enabled)
    return _partner_response(partner)


@router.put("/{partner_id}/roles/{role}/designated-staff", response_model=PartnerResponse)
async def designate_staff(
    partner_id: uuid.UUID,
    role: str,
    body: DesignatedStaffRequest,
    staff: Staff = Depends(require_roles("admin")),
    db: AsyncSession = Depends(get_session),
):
    partner = await partner_roles.assign_designated_staff(db, partner_id, role, body.staff_id)
    return _partner_response(partner)


@router.put("/{partner_id}/roles/{role}/override", response_model=PartnerResponse)
async def set_override(
    partner_id: uuid.UUID,
    role: str,
    body: RoleOverrideRequest,
    staff: Staff = Depends(require_roles("admin")),
    db: AsyncSession = Depends(get_session),
):
    partner = await partner_roles.set_role_override(db, partner_id, role, body.override)
    return _partner_response(partner)
