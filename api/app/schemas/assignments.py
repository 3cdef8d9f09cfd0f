# api/app/schemas/assignments.py
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field


class StaffCandidateResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    phone: str | None = None
    role: str
    is_active: bool
    workload: int
    today_jobs: int

    class Config:
        from_attributes = True


class CandidateListResponse(BaseModel):
    date: date
    staff: list[StaffCandidateResponse]


class AssignmentItem(BaseModel):
    listing_id: uuid.UUID
    staff_id: uuid.UUID
    role: Literal["photographer", "editor"]
    scheduled_at: datetime | None = None
    notes: str | None = None


class AssignmentBatchRequest(BaseModel):
    assignments: list[AssignmentItem] = Field(min_length=1)


class AssignmentResultItem(BaseModel):
    success: bool
    listing_id: uuid.UUID
    error: str | None = None

    class Config:
        from_attributes = True


class BatchSummary(BaseModel):
    total: int
    successful: int
    failed: int


class AssignmentBatchResponse(BaseModel):
    success: bool
    results: list[AssignmentResultItem]
    summary: BatchSummary
