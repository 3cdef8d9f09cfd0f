# api/app/schemas/partners.py
from __future__ import annotations

import uuid

from pydantic import BaseModel


class RoleStatusResponse(BaseModel):
    role: str
    is_active: bool
    has_designated_staff: bool
    designated_staff_id: str | None = None
    designated_staff_name: str | None = None
    is_overridden: bool
    effectively_active: bool

    class Config:
        from_attributes = True


class PartnerRolesResponse(BaseModel):
    email: str
    roles: list[RoleStatusResponse]


class PartnerResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    active_roles: list[str]
    designated_staff: dict[str, str]
    role_overrides: dict[str, bool]
    effective_roles: list[str]


class ToggleRoleRequest(BaseModel):
    enabled: bool


class DesignatedStaffRequest(BaseModel):
    staff_id: uuid.UUID | None = None


class RoleOverrideRequest(BaseModel):
    override: bool
