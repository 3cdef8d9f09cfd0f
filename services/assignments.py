# services/assignments.py
"""
Assignment resolver: rank staff by open workload and write assignments.

Batch requests are processed item by item, each in its own SAVEPOINT, and
reported per item. A failing item never rolls back the others.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.errors import ValidationFailed
from models.assignment import (
    OPEN_EDITOR_STATUSES,
    OPEN_PHOTOGRAPHER_STATUSES,
    EditorAssignment,
    PhotographerAssignment,
)
from models.listing import Listing
from models.staff import Staff
from services.audit import record_job_event
from services.notifications import queue_notification

logger = logging.getLogger(__name__)

ASSIGNABLE_ROLES = ("photographer", "editor")


class AssignmentRejected(Exception):
    pass


@dataclass
class AssignmentRequest:
    listing_id: uuid.UUID
    staff_id: uuid.UUID
    role: str
    scheduled_at: datetime | None = None
    notes: str | None = None


@dataclass
class AssignmentResult:
    listing_id: uuid.UUID
    success: bool
    error: str | None = None


@dataclass
class StaffCandidate:
    id: uuid.UUID
    name: str
    email: str
    phone: str | None
    role: str
    is_active: bool
    workload: int = 0
    today_jobs: int = 0


def validate_staff_for_role(staff: Staff | None, role: str) -> str | None:
    """Reason this staff member cannot take the role, or None if they can."""
    if staff is None:
        return "Staff member not found"
    if not staff.is_active:
        return "Staff member is not active"
    if staff.role != role:
        return f"Staff member is a {staff.role}, not a {role}"
    return None


def rank_by_workload(candidates: list[StaffCandidate]) -> list[StaffCandidate]:
    """Least busy first; ties keep name order."""
    return sorted(candidates, key=lambda c: (c.workload, c.name.lower()))


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


async def list_candidates(
    db: AsyncSession,
    role: str = "all",
    on_date: date | None = None,
) -> list[StaffCandidate]:
    if role != "all" and role not in ASSIGNABLE_ROLES:
        raise ValidationFailed(f"role must be one of: all, {', '.join(ASSIGNABLE_ROLES)}")

    roles = ASSIGNABLE_ROLES if role == "all" else (role,)
    result = await db.execute(
        select(Staff)
        .where(Staff.is_active.is_(True), Staff.role.in_(roles))
        .order_by(Staff.name)
    )
    staff = list(result.scalars().all())
    if not staff:
        return []

    photographer_load = await _count_by_staff(
        db,
        PhotographerAssignment.photographer_id,
        PhotographerAssignment.status.in_(OPEN_PHOTOGRAPHER_STATUSES),
    )
    editor_load = await _count_by_staff(
        db,
        EditorAssignment.editor_id,
        EditorAssignment.status.in_(OPEN_EDITOR_STATUSES),
    )
    day_start, day_end = _day_bounds(on_date or datetime.now(timezone.utc).date())
    day_jobs = await _count_by_staff(
        db,
        PhotographerAssignment.photographer_id,
        PhotographerAssignment.status.in_(OPEN_PHOTOGRAPHER_STATUSES),
        PhotographerAssignment.scheduled_at >= day_start,
        PhotographerAssignment.scheduled_at < day_end,
    )

    candidates = []
    for s in staff:
        if s.role == "photographer":
            workload, today = photographer_load.get(s.id, 0), day_jobs.get(s.id, 0)
        else:
            workload, today = editor_load.get(s.id, 0), 0
        candidates.append(
            StaffCandidate(
                id=s.id,
                name=s.name,
                email=s.email,
                phone=s.phone,
                role=s.role,
                is_active=s.is_active,
                workload=workload,
                today_jobs=today,
            )
        )
    return rank_by_workload(candidates)


async def _count_by_staff(db: AsyncSession, staff_column, *conditions) -> dict[uuid.UUID, int]:
    stmt = select(staff_column, func.count()).where(*conditions).group_by(staff_column)
    result = await db.execute(stmt)
    return {staff_id: count for staff_id, count in result.all()}


async def create_assignments(
    db: AsyncSession,
    items: list[AssignmentRequest],
    actor: Staff,
) -> list[AssignmentResult]:
    results: list[AssignmentResult] = []
    for item in items:
        try:
            async with db.begin_nested():
                await _apply_assignment(db, item, actor)
        except AssignmentRejected as exc:
            results.append(AssignmentResult(item.listing_id, False, str(exc)))
            continue
        except SQLAlchemyError as exc:
            logger.error("Assignment of %s to %s failed: %s", item.staff_id, item.listing_id, exc)
            results.append(AssignmentResult(item.listing_id, False, str(getattr(exc, "orig", None) or exc)))
            continue
        results.append(AssignmentResult(item.listing_id, True))

    ok = sum(1 for r in results if r.success)
    logger.info("Assignments: %d/%d succeeded (actor=%s)", ok, len(results), actor.id)
    return results


async def _apply_assignment(db: AsyncSession, item: AssignmentRequest, actor: Staff) -> None:
    if item.role not in ASSIGNABLE_ROLES:
        raise AssignmentRejected(f"Invalid role: {item.role}")

    staff = await db.get(Staff, item.staff_id)
    reason = validate_staff_for_role(staff, item.role)
    if reason:
        raise AssignmentRejected(reason)

    listing = await db.get(Listing, item.listing_id)
    if listing is None:
        raise AssignmentRejected("Listing not found")

    if item.role == "photographer":
        listing.photographer_id = staff.id
        if item.scheduled_at:
            listing.scheduled_at = item.scheduled_at
        db.add(
            PhotographerAssignment(
                listing_id=listing.id,
                photographer_id=staff.id,
                status="pending",
                scheduled_at=item.scheduled_at,
                notes=item.notes,
            )
        )
    else:
        listing.editor_id = staff.id
        db.add(
            EditorAssignment(
                listing_id=listing.id,
                editor_id=staff.id,
                status="pending",
                notes=item.notes,
            )
        )
    await db.flush()

    await record_job_event(
        db,
        listing.id,
        f"{item.role}_assigned",
        new_value={"staff_id": str(staff.id), "staff_name": staff.name, "notes": item.notes},
        actor_id=actor.id,
    )
    await queue_notification(
        db,
        f"{item.role}_assigned",
        staff.name,
        staff.email,
        {
            "listing_id": str(listing.id),
            "listing_address": listing.address,
            "scheduled_at": item.scheduled_at.isoformat() if item.scheduled_at else None,
            "assigned_by": actor.name,
        },
    )
