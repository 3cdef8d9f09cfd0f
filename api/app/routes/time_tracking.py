# api/app/routes/time_tracking.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.dependencies import get_current_staff, get_session, require_roles
from api.app.errors import Forbidden
from api.app.schemas.time_tracking import (
    ClockInRequest,
    ClockOutRequest,
    ClosePeriodResponse,
    PayPeriodCreate,
    PayPeriodDetailResponse,
    PayPeriodResponse,
    StaffTotalsResponse,
    TimeEntryResponse,
    TimesheetResponse,
)
from models.staff import Staff
from services import time_tracking

router = APIRouter(prefix="/admin/time", tags=["time"])


def _target_staff(caller: Staff, staff_id: uuid.UUID | None) -> uuid.UUID:
    if staff_id is None or staff_id == caller.id:
        return caller.id
    if caller.role != "admin":
        raise Forbidden("Only admins can clock in or out for another staff member")
    return staff_id


@router.post("/clock-in", response_model=TimeEntryResponse)
async def clock_in(
    body: ClockInRequest,
    staff: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_session),
):
    entry = await time_tracking.clock_in(db, _target_staff(staff, body.staff_id), body.notes)
    return TimeEntryResponse.model_validate(entry)


@router.post("/clock-out", response_model=TimeEntryResponse)
async def clock_out(
    body: ClockOutRequest,
    staff: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_session),
):
    entry = await time_tracking.clock_out(
        db,
        _target_staff(staff, body.staff_id),
        entry_id=body.entry_id,
        break_minutes=body.break_minutes,
        notes=body.notes,
    )
    return TimeEntryResponse.model_validate(entry)


@router.get("/periods", response_model=list[PayPeriodResponse])
async def list_periods(
    status: str | None = Query(None),
    staff: Staff = Depends(require_roles("admin")),
    db: AsyncSession = Depends(get_session),
):
    periods = await time_tracking.list_pay_periods(db, status)
    return [PayPeriodResponse.model_validate(p) for p in periods]


@router.post("/periods", response_model=PayPeriodResponse, status_code=201)
async def create_period(
    body: PayPeriodCreate,
    staff: Staff = Depends(require_roles("admin")),
    db: AsyncSession = Depends(get_session),
):
    period = await time_tracking.create_pay_period(db, body.start_date)
    return PayPeriodResponse.model_validate(period)


@router.get("/periods/current", response_model=PayPeriodResponse)
async def current_period(
    staff: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_session),
):
    return PayPeriodResponse.model_validate(await time_tracking.get_current_pay_period(db))


@router.get("/periods/{period_id}", response_model=PayPeriodDetailResponse)
async def period_detail(
    period_id: uuid.UUID,
    staff: Staff = Depends(require_roles("admin")),
    db: AsyncSession = Depends(get_session),
):
    period, summary = await time_tracking.get_pay_period_detail(db, period_id)
    return PayPeriodDetailResponse(
        period=PayPeriodResponse.model_validate(period),
        total_minutes=summary.total_minutes,
        total_hours=float(summary.total_hours),
        total_pay_cents=summary.total_pay_cents,
        staff=[StaffTotalsResponse.model_validate(t) for t in summary.by_staff.values()],
    )


@router.get("/periods/{period_id}/timesheet/{staff_id}", response_model=TimesheetResponse)
async def timesheet(
    period_id: uuid.UUID,
    staff_id: uuid.UUID,
    staff: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_session),
):
    if staff_id != staff.id and staff.role != "admin":
        raise Forbidden("You can only view your own timesheet")
    period, entries, summary = await time_tracking.get_timesheet(db, staff_id, period_id)
    return TimesheetResponse(
        period=PayPeriodResponse.model_validate(period),
        staff_id=staff_id,
        entries=[TimeEntryResponse.model_validate(e) for e in entries],
        total_minutes=summary.total_minutes,
        total_hours=float(summary.total_hours),
        total_pay_cents=summary.total_pay_cents,
    )


@router.post("/periods/{period_id}/close", response_model=ClosePeriodResponse)
async def close_period(
    period_id: uuid.UUID,
    staff: Staff = Depends(require_roles("admin")),
    db: AsyncSession = Depends(get_session),
):
    result = await time_tracking.close_pay_period(db, period_id, staff)
    return ClosePeriodResponse(
        period=PayPeriodResponse.model_validate(result.period),
        total_hours=float(result.total_hours),
        total_pay_cents=result.total_pay_cents,
        entries_approved=result.entry_count,
    )
