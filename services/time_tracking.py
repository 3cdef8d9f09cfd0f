# services/time_tracking.py
"""
Clock-in/clock-out for hourly staff and bi-weekly pay-period settlement.

Money is kept in integer cents end to end. Rates are stored in dollars on the
staff row and frozen onto each time entry at clock-in.
Entries belong to a period by their clock_in timestamp only.
"""
from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.errors import NotFound, StateConflict, ValidationFailed
from models.pay_period import PayPeriod
from models.staff import Staff
from models.time_entry import TimeEntry
from services.audit import log_event

logger = logging.getLogger(__name__)

PERIOD_ANCHOR = date(2024, 1, 1)  # a Monday
PERIOD_LENGTH_DAYS = 14


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ─────────────────────────────────────────────
# Pure helpers
# ─────────────────────────────────────────────
def rate_to_cents(hourly_rate: Decimal | float) -> int:
    return int((Decimal(str(hourly_rate)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_work_minutes(clock_in: datetime, clock_out: datetime, break_minutes: int = 0) -> int:
    elapsed = math.floor((clock_out - clock_in).total_seconds() / 60)
    return max(0, elapsed - max(0, break_minutes))


def compute_pay_cents(work_minutes: int, hourly_rate: Decimal | float) -> int:
    cents = Decimal(work_minutes) / Decimal(60) * rate_to_cents(hourly_rate)
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def minutes_to_hours(minutes: int) -> Decimal:
    return (Decimal(minutes) / Decimal(60)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def compute_period_bounds(day: date) -> tuple[date, date]:
    """Bi-weekly window containing `day`, starting on a Monday."""
    offset = (day - PERIOD_ANCHOR).days % PERIOD_LENGTH_DAYS
    start = day - timedelta(days=offset)
    return start, start + timedelta(days=PERIOD_LENGTH_DAYS - 1)


def period_window(period: PayPeriod) -> tuple[datetime, datetime]:
    """Inclusive UTC timestamp range covered by a period."""
    return (
        datetime.combine(period.start_date, time.min, tzinfo=timezone.utc),
        datetime.combine(period.end_date, time.max, tzinfo=timezone.utc),
    )


@dataclass
class StaffTotals:
    staff_id: uuid.UUID
    total_minutes: int = 0
    total_pay_cents: int = 0
    entry_count: int = 0

    @property
    def total_hours(self) -> Decimal:
        return minutes_to_hours(self.total_minutes)


@dataclass
class PeriodSummary:
    total_minutes: int = 0
    total_pay_cents: int = 0
    by_staff: dict[uuid.UUID, StaffTotals] = field(default_factory=dict)

    @property
    def total_hours(self) -> Decimal:
        return minutes_to_hours(self.total_minutes)


def summarize_entries(entries: list[TimeEntry]) -> PeriodSummary:
    """Aggregate finished entries. Active entries carry no duration and are skipped."""
    summary = PeriodSummary()
    for entry in entries:
        if entry.status == "active" or entry.duration_minutes is None:
            continue
        totals = summary.by_staff.setdefault(entry.staff_id, StaffTotals(staff_id=entry.staff_id))
        totals.total_minutes += entry.duration_minutes
        totals.total_pay_cents += entry.total_pay_cents or 0
        totals.entry_count += 1
        summary.total_minutes += entry.duration_minutes
        summary.total_pay_cents += entry.total_pay_cents or 0
    return summary


# ─────────────────────────────────────────────
# Clock in / out
# ─────────────────────────────────────────────
async def get_active_entry(db: AsyncSession, staff_id: uuid.UUID) -> TimeEntry | None:
    result = await db.execute(
        select(TimeEntry)
        .where(TimeEntry.staff_id == staff_id, TimeEntry.status == "active")
        .order_by(TimeEntry.clock_in.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def clock_in(db: AsyncSession, staff_id: uuid.UUID, notes: str | None = None) -> TimeEntry:
    staff = await db.get(Staff, staff_id)
    if staff is None or not staff.is_active:
        raise NotFound("Staff member not found")

    if await get_active_entry(db, staff_id) is not None:
        raise StateConflict("Already clocked in. Please clock out first.")

    if not staff.hourly_rate:
        raise ValidationFailed("Hourly rate not configured for this staff member.")

    entry = TimeEntry(
        staff_id=staff_id,
        clock_in=utcnow(),
        break_minutes=0,
        hourly_rate=staff.hourly_rate,
        status="active",
        notes=notes,
    )
    try:
        async with db.begin_nested():
            db.add(entry)
    except IntegrityError:
        raise StateConflict("Already clocked in. Please clock out first.") from None

    logger.info("Staff %s clocked in (entry %s)", staff_id, entry.id)
    return entry


async def clock_out(
    db: AsyncSession,
    staff_id: uuid.UUID,
    entry_id: uuid.UUID | None = None,
    break_minutes: int = 0,
    notes: str | None = None,
) -> TimeEntry:
    if break_minutes < 0:
        raise ValidationFailed("break_minutes cannot be negative")

    stmt = select(TimeEntry).where(TimeEntry.staff_id == staff_id, TimeEntry.status == "active")
    if entry_id is not None:
        stmt = stmt.where(TimeEntry.id == entry_id)
    result = await db.execute(stmt.order_by(TimeEntry.clock_in.desc()).limit(1).with_for_update())
    entry = result.scalar_one_or_none()
    if entry is None:
        raise NotFound("No active time entry found.")

    now = utcnow()
    work_minutes = compute_work_minutes(entry.clock_in, now, break_minutes)

    entry.clock_out = now
    entry.break_minutes = break_minutes
    entry.duration_minutes = work_minutes
    entry.total_pay_cents = compute_pay_cents(work_minutes, entry.hourly_rate)
    entry.status = "completed"
    if notes:
        entry.notes = notes
    await db.flush()

    logger.info(
        "Staff %s clocked out: %d min, %d cents (entry %s)",
        staff_id,
        work_minutes,
        entry.total_pay_cents,
        entry.id,
    )
    return entry


# ─────────────────────────────────────────────
# Pay periods
# ─────────────────────────────────────────────
async def get_pay_period(db: AsyncSession, period_id: uuid.UUID) -> PayPeriod:
    period = await db.get(PayPeriod, period_id)
    if period is None:
        raise NotFound("Pay period not found")
    return period


async def get_current_pay_period(db: AsyncSession) -> PayPeriod:
    result = await db.execute(select(PayPeriod).where(PayPeriod.status == "open").limit(1))
    period = result.scalar_one_or_none()
    if period is None:
        raise NotFound("No open pay period")
    return period


async def list_pay_periods(
    db: AsyncSession,
    status: str | None = None,
    limit: int = 26,
) -> list[PayPeriod]:
    stmt = select(PayPeriod).order_by(PayPeriod.start_date.desc()).limit(limit)
    if status:
        stmt = stmt.where(PayPeriod.status == status)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def create_pay_period(db: AsyncSession, start: date | None = None) -> PayPeriod:
    start_date, end_date = compute_period_bounds(start or utcnow().date())

    result = await db.execute(select(PayPeriod).where(PayPeriod.status == "open").limit(1))
    if result.scalar_one_or_none() is not None:
        raise StateConflict("Another pay period is already open")

    period = PayPeriod(start_date=start_date, end_date=end_date, status="open")
    try:
        async with db.begin_nested():
            db.add(period)
    except IntegrityError:
        raise StateConflict(
            f"Pay period {start_date.isoformat()} to {end_date.isoformat()} already exists or another period is open"
        ) from None

    logger.info("Opened pay period %s .. %s (%s)", start_date, end_date, period.id)
    return period


async def _period_entries(
    db: AsyncSession,
    period: PayPeriod,
    statuses: tuple[str, ...],
    staff_id: uuid.UUID | None = None,
) -> list[TimeEntry]:
    window_start, window_end = period_window(period)
    stmt = select(TimeEntry).where(
        TimeEntry.clock_in >= window_start,
        TimeEntry.clock_in <= window_end,
        TimeEntry.status.in_(statuses),
    )
    if staff_id is not None:
        stmt = stmt.where(TimeEntry.staff_id == staff_id)
    result = await db.execute(stmt.order_by(TimeEntry.clock_in.asc()))
    return list(result.scalars().all())


async def get_pay_period_detail(db: AsyncSession, period_id: uuid.UUID) -> tuple[PayPeriod, PeriodSummary]:
    """Period row plus per-staff breakdown. Closed periods report their frozen totals."""
    period = await get_pay_period(db, period_id)
    entries = await _period_entries(db, period, ("completed", "approved"))
    summary = summarize_entries(entries)

    if period.status != "open" and period.total_pay_cents is not None:
        summary.total_pay_cents = period.total_pay_cents
        summary.total_minutes = int((Decimal(period.total_hours or 0) * 60).to_integral_value())
    return period, summary


async def get_timesheet(
    db: AsyncSession,
    staff_id: uuid.UUID,
    period_id: uuid.UUID,
) -> tuple[PayPeriod, list[TimeEntry], PeriodSummary]:
    period = await get_pay_period(db, period_id)
    entries = await _period_entries(db, period, ("completed", "approved"), staff_id=staff_id)
    return period, entries, summarize_entries(entries)


@dataclass
class CloseResult:
    period: PayPeriod
    total_hours: Decimal
    total_pay_cents: int
    entry_count: int


async def close_pay_period(
    db: AsyncSession,
    period_id: uuid.UUID,
    actor: Staff | None = None,
) -> CloseResult:
    period = await get_pay_period(db, period_id)
    if period.status != "open":
        raise StateConflict("Pay period is not open")

    entries = await _period_entries(db, period, ("completed",))
    summary = summarize_entries(entries)
    total_hours = summary.total_hours
    now = utcnow()

    # a concurrent close matches zero rows here
    result = await db.execute(
        update(PayPeriod)
        .where(PayPeriod.id == period.id, PayPeriod.status == "open")
        .values(
            status="closed",
            total_hours=total_hours,
            total_pay_cents=summary.total_pay_cents,
            closed_at=now,
        )
        .returning(PayPeriod.id)
        .execution_options(synchronize_session=False)
    )
    if result.scalar_one_or_none() is None:
        raise StateConflict("Pay period is not open")

    if entries:
        await db.execute(
            update(TimeEntry)
            .where(TimeEntry.id.in_([e.id for e in entries]), TimeEntry.status == "completed")
            .values(status="approved")
        )

    period.status = "closed"
    period.total_hours = total_hours
    period.total_pay_cents = summary.total_pay_cents
    period.closed_at = now

    await log_event(
        db,
        event_type="pay_period_closed",
        level="info",
        source="time_tracking",
        message=f"Closed pay period {period.start_date} .. {period.end_date}",
        metadata={
            "pay_period_id": str(period.id),
            "total_hours": str(total_hours),
            "total_pay_cents": summary.total_pay_cents,
            "entries": len(entries),
        },
        actor_id=actor.id if actor else None,
    )

    logger.info(
        "Closed pay period %s: %s h, %d cents over %d entries",
        period.id,
        total_hours,
        summary.total_pay_cents,
        len(entries),
    )
    return CloseResult(
        period=period,
        total_hours=total_hours,
        total_pay_cents=summary.total_pay_cents,
        entry_count=len(entries),
    )
