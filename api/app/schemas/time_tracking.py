# api/app/schemas/time_tracking.py
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field


class ClockInRequest(BaseModel):
    staff_id: uuid.UUID | None = None  # defaults to the caller
    notes: str | None = None


class ClockOutRequest(BaseModel):
    staff_id: uuid.UUID | None = None
    entry_id: uuid.UUID | None = None
    break_minutes: int = Field(0, ge=0, le=24 * 60)
    notes: str | None = None


class TimeEntryResponse(BaseModel):
    id: uuid.UUID
    staff_id: uuid.UUID
    clock_in: datetime
    clock_out: datetime | None = None
    duration_minutes: int | None = None
    break_minutes: int
    hourly_rate: float
    total_pay_cents: int | None = None
    status: str
    notes: str | None = None

    class Config:
        from_attributes = True


class PayPeriodCreate(BaseModel):
    start_date: date | None = None


class PayPeriodResponse(BaseModel):
    id: uuid.UUID
    start_date: date
    end_date: date
    status: str
    total_hours: float | None = None
    total_pay_cents: int | None = None
    closed_at: datetime | None = None
    paid_at: datetime | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class StaffTotalsResponse(BaseModel):
    staff_id: uuid.UUID
    total_minutes: int
    total_hours: float
    total_pay_cents: int
    entry_count: int

    class Config:
        from_attributes = True


class PayPeriodDetailResponse(BaseModel):
    period: PayPeriodResponse
    total_minutes: int
    total_hours: float
    total_pay_cents: int
    staff: list[StaffTotalsResponse]


class TimesheetResponse(BaseModel):
    period: PayPeriodResponse
    staff_id: uuid.UUID
    entries: list[TimeEntryResponse]
    total_minutes: int
    total_hours: float
    total_pay_cents: int


class ClosePeriodResponse(BaseModel):
    success: bool = True
    period: PayPeriodResponse
    total_hours: float = Field(alias="totalHours")
    total_pay_cents: int = Field(alias="totalPayCents")
    entries_approved: int = Field(alias="entriesApproved")

    class Config:
        populate_by_name = True
