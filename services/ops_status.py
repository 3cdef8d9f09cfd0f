# services/ops_status.py
"""
Ops status lifecycle for listing jobs.

    pending -> scheduled -> in_progress -> staged -> awaiting_editing
            -> in_editing -> ready_for_qc -> in_qc -> delivered

Forward skips are allowed. `cancelled` sits outside the main flow.
delivered_at is non-null exactly while a job is delivered, and is stamped
only on the first move into delivered.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.errors import NotFound, ValidationFailed
from models.job_event import JobEvent
from models.listing import Listing
from models.staff import Staff
from services.audit import record_job_events
from services.notifications import queue_notification, status_label

logger = logging.getLogger(__name__)

MAX_BULK_JOBS = 100


class OpsStatus(str, Enum):
    PENDING = "pending"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    STAGED = "staged"
    AWAITING_EDITING = "awaiting_editing"
    IN_EDITING = "in_editing"
    READY_FOR_QC = "ready_for_qc"
    IN_QC = "in_qc"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


OPS_STATUS_FLOW: tuple[OpsStatus, ...] = (
    OpsStatus.PENDING,
    OpsStatus.SCHEDULED,
    OpsStatus.IN_PROGRESS,
    OpsStatus.STAGED,
    OpsStatus.AWAITING_EDITING,
    OpsStatus.IN_EDITING,
    OpsStatus.READY_FOR_QC,
    OpsStatus.IN_QC,
    OpsStatus.DELIVERED,
)

TERMINAL_STATUSES = frozenset({OpsStatus.DELIVERED, OpsStatus.CANCELLED})

VALID_STATUS_VALUES: tuple[str, ...] = tuple(s.value for s in OpsStatus)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_status(value: str | None) -> OpsStatus:
    try:
        return OpsStatus(value)
    except ValueError:
        raise ValidationFailed(
            f"Invalid status '{value}'. Must be one of: {', '.join(VALID_STATUS_VALUES)}",
            validStatuses=list(VALID_STATUS_VALUES),
        ) from None


def is_terminal(status: OpsStatus | str) -> bool:
    return OpsStatus(status) in TERMINAL_STATUSES


def apply_status(listing: Listing, status: OpsStatus, now: datetime) -> bool:
    """Move one listing to `status` in memory. Returns True if the status changed."""
    changed = listing.ops_status != status.value
    listing.ops_status = status.value
    if status is OpsStatus.DELIVERED:
        if listing.delivered_at is None:
            listing.delivered_at = now
    else:
        listing.delivered_at = None
    return changed


@dataclass
class BulkStatusResult:
    status: OpsStatus
    jobs: list[Listing] = field(default_factory=list)
    changed_ids: list[uuid.UUID] = field(default_factory=list)

    @property
    def updated(self) -> int:
        """Rows matched and written, including ones already at the target status."""
        return len(self.jobs)


def _dedupe(ids: list[uuid.UUID]) -> list[uuid.UUID]:
    seen: set[uuid.UUID] = set()
    out = []
    for i in ids:
        if i not in seen:
            seen.add(i)
            out.append(i)
    return out


async def bulk_update_status(
    db: AsyncSession,
    job_ids: list[uuid.UUID],
    new_status: str,
    actor: Staff | None = None,
) -> BulkStatusResult:
    status = parse_status(new_status)
    ids = _dedupe(job_ids)
    if not ids:
        raise ValidationFailed("jobIds must be a non-empty array")
    if len(ids) > MAX_BULK_JOBS:
        raise ValidationFailed(f"Cannot update more than {MAX_BULK_JOBS} jobs at once")

    stmt = select(Listing).where(Listing.id.in_(ids)).with_for_update()
    result = await db.execute(stmt)
    listings = list(result.scalars().all())

    now = utcnow()
    actor_id = actor.id if actor else None
    events: list[JobEvent] = []
    changed: list[Listing] = []

    for listing in listings:
        old_status = listing.ops_status
        if apply_status(listing, status, now):
            changed.append(listing)
            events.append(
                JobEvent(
                    listing_id=listing.id,
                    event_type="status_changed",
                    old_value={"ops_status": old_status},
                    new_value={"ops_status": status.value},
                    actor_id=actor_id,
                    actor_type="staff" if actor else "system",
                )
            )

    await db.flush()

    await record_job_events(db, events)
    if changed:
        await _notify_assigned_staff(db, changed, status, actor)

    missing = len(ids) - len(listings)
    logger.info(
        "Bulk status -> %s: %d matched, %d changed, %d missing (actor=%s)",
        status.value,
        len(listings),
        len(changed),
        missing,
        actor_id,
    )

    return BulkStatusResult(
        status=status,
        jobs=listings,
        changed_ids=[listing.id for listing in changed],
    )


async def transition_job(
    db: AsyncSession,
    job_id: uuid.UUID,
    new_status: str,
    actor: Staff | None = None,
) -> Listing:
    result = await bulk_update_status(db, [job_id], new_status, actor)
    if not result.jobs:
        raise NotFound("Job not found")
    return result.jobs[0]


async def get_job(db: AsyncSession, job_id: uuid.UUID) -> Listing:
    listing = await db.get(Listing, job_id)
    if listing is None:
        raise NotFound("Job not found")
    return listing


async def list_jobs(
    db: AsyncSession,
    statuses: list[str] | None = None,
    limit: int = 200,
) -> list[Listing]:
    stmt = select(Listing).order_by(Listing.is_rush.desc(), Listing.scheduled_at.asc().nulls_last())
    if statuses:
        stmt = stmt.where(Listing.ops_status.in_([parse_status(s).value for s in statuses]))
    result = await db.execute(stmt.limit(limit))
    return list(result.scalars().all())


def group_by_status(listings: list[Listing]) -> dict[str, list[Listing]]:
    """Kanban columns, in lifecycle order, always including empty columns."""
    board: dict[str, list[Listing]] = {s.value: [] for s in OpsStatus}
    for listing in listings:
        board.setdefault(listing.ops_status, []).append(listing)
    return board


async def _notify_assigned_staff(
    db: AsyncSession,
    listings: list[Listing],
    status: OpsStatus,
    actor: Staff | None,
) -> None:
    staff_ids = {
        sid
        for listing in listings
        for sid in (listing.photographer_id, listing.editor_id)
        if sid is not None
    }
    if not staff_ids:
        return

    result = await db.execute(
        select(Staff).where(Staff.id.in_(staff_ids), Staff.is_active.is_(True))
    )
    staff_by_id = {s.id: s for s in result.scalars().all()}

    notification_type = "job_delivered" if status is OpsStatus.DELIVERED else "status_changed"
    for listing in listings:
        for sid in {listing.photographer_id, listing.editor_id}:
            member = staff_by_id.get(sid)
            if member is None:
                continue
            await queue_notification(
                db,
                notification_type,
                member.name,
                member.email,
                {
                    "listing_id": str(listing.id),
                    "listing_address": listing.address,
                    "status": status.value,
                    "status_label": status_label(status.value),
                    "assigned_by": actor.name if actor else None,
                },
            )
