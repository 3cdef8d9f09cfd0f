# tests/test_partner_roles.py
from __future__ import annotations

import uuid

import pytest

from api.app.errors import NotFound, ValidationFailed
from conftest import make_staff, rows_result, scalar_result
from models.partner import Partner
from services.partner_roles import (
    VALID_PARTNER_ROLES,
    assign_designated_staff,
    build_role_statuses,
    can_access_role,
    get_effective_roles,
    get_role_statuses,
    set_role_override,
    should_auto_disable_role,
    toggle_role,
)


def _partner(**kwargs) -> Partner:
    defaults = dict(
        id=uuid.uuid4(),
        email="partner@example.com",
        name="Dev Partner",
        active_roles=["photographer", "qc"],
        designated_staff={},
        role_overrides={},
    )
    defaults.update(kwargs)
    return Partner(**defaults)


def test_designated_staff_disables_role_unless_overridden():
    designated = {"photographer": "staff-1"}
    assert should_auto_disable_role(designated, {}, "photographer") is True
    assert should_auto_disable_role(designated, {"photographer": True}, "photographer") is False
    assert should_auto_disable_role(designated, {}, "qc") is False


def test_effective_roles():
    roles = get_effective_roles(
        ["photographer", "qc", "va"],
        {"photographer": "s1", "qc": "s2"},
        {"qc": True},
    )
    assert roles == ["qc", "va"]


def test_role_statuses_cover_every_role():
    staff_id = str(uuid.uuid4())
    partner = _partner(designated_staff={"photographer": staff_id})
    statuses = {s.role: s for s in build_role_statuses(partner, {staff_id: "Pat"})}

    assert set(statuses) == set(VALID_PARTNER_ROLES)
    assert statuses["photographer"].is_active is True
    assert statuses["photographer"].effectively_active is False
    assert statuses["photographer"].designated_staff_name == "Pat"
    assert statuses["qc"].effectively_active is True
    assert statuses["videographer"].is_active is False


@pytest.mark.asyncio
async def test_get_role_statuses_resolves_staff_names(db):
    staff = make_staff(name="Pat")
    partner = _partner(designated_staff={"qc": str(staff.id)})
    db.execute.side_effect = [scalar_result(partner), rows_result([(staff.id, "Pat")])]

    statuses = await get_role_statuses(db, "Partner@Example.com ")

    qc = next(s for s in statuses if s.role == "qc")
    assert qc.designated_staff_name == "Pat"
    assert qc.effectively_active is False


@pytest.mark.asyncio
async def test_get_role_statuses_skips_malformed_staff_id(db):
    staff = make_staff(name="Pat")
    partner = _partner(designated_staff={"qc": str(staff.id), "photographer": "not-a-uuid"})
    db.execute.side_effect = [scalar_result(partner), rows_result([(staff.id, "Pat")])]

    statuses = {s.role: s for s in await get_role_statuses(db, "partner@example.com")}

    assert statuses["qc"].designated_staff_name == "Pat"
    assert statuses["photographer"].has_designated_staff is True
    assert statuses["photographer"].designated_staff_name is None
    assert statuses["photographer"].effectively_active is False


@pytest.mark.asyncio
async def test_get_role_statuses_unknown_partner(db):
    db.execute.return_value = scalar_result(None)
    with pytest.raises(NotFound):
        await get_role_statuses(db, "nobody@example.com")


@pytest.mark.asyncio
async def test_can_access_role(db):
    db.execute.return_value = scalar_result(
        _partner(designated_staff={"photographer": "s1"}, role_overrides={"photographer": True})
    )
    assert await can_access_role(db, "partner@example.com", "photographer") is True
    assert await can_access_role(db, "partner@example.com", "va") is False


@pytest.mark.asyncio
async def test_disabling_role_clears_override(db):
    partner = _partner(role_overrides={"qc": True, "photographer": True})
    db.get.return_value = partner

    await toggle_role(db, partner.id, "qc", enabled=False)

    assert partner.active_roles == ["photographer"]
    assert partner.role_overrides == {"photographer": True}


@pytest.mark.asyncio
async def test_enabling_role_is_idempotent(db):
    partner = _partner()
    db.get.return_value = partner
    await toggle_role(db, partner.id, "qc", enabled=True)
    assert partner.active_roles == ["photographer", "qc"]


@pytest.mark.asyncio
async def test_override_set_and_cleared(db):
    partner = _partner()
    db.get.return_value = partner

    await set_role_override(db, partner.id, "photographer", True)
    assert partner.role_overrides == {"photographer": True}
    await set_role_override(db, partner.id, "photographer", False)
    assert partner.role_overrides == {}


@pytest.mark.asyncio
async def test_designating_staff(db):
    partner = _partner()
    staff = make_staff()

    async def _get(model, _id):
        return partner if model is Partner else staff

    db.get.side_effect = _get
    await assign_designated_staff(db, partner.id, "photographer", staff.id)
    assert partner.designated_staff == {"photographer": str(staff.id)}

    await assign_designated_staff(db, partner.id, "photographer", None)
    assert partner.designated_staff == {}


@pytest.mark.asyncio
async def test_unknown_role_is_rejected(db):
    with pytest.raises(ValidationFailed):
        await toggle_role(db, uuid.uuid4(), "pilot", enabled=True)
    db.get.assert_not_awaited()
