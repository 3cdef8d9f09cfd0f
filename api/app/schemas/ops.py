# api/app/schemas/ops.py
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class JobResponse(BaseModel):
    id: uuid.UUID
    address: str
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    ops_status: str
    is_rush: bool
    photographer_id: uuid.UUID | None = None
    editor_id: uuid.UUID | None = None
    scheduled_at: datetime | None = None
    delivered_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BulkStatusRequest(BaseModel):
    job_ids: list[uuid.UUID] = Field(alias="jobIds", min_length=1)
    new_status: str = Field(alias="newStatus")

    class Config:
        populate_by_name = True


class BulkStatusResponse(BaseModel):
    success: bool = True
    updated: int
    jobs: list[JobResponse]


class StatusUpdateRequest(BaseModel):
    status: str


class JobBoardResponse(BaseModel):
    total: int
    columns: dict[str, list[JobResponse]]
