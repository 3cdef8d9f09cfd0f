# api/app/routes/ops.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.dependencies import get_current_staff, get_session
from api.app.schemas.ops import (
    BulkStatusRequest,
    BulkStatusResponse,
    JobBoardResponse,
    JobResponse,
    StatusUpdateRequest,
)
from models.staff import Staff
from services import ops_status

router = APIRouter(prefix="/admin/ops", tags=["ops"])


@router.post("/bulk-status", response_model=BulkStatusResponse)
async def bulk_status(
    body: BulkStatusRequest,
    staff: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_session),
):
    result = await ops_status.bulk_update_status(db, body.job_ids, body.new_status, staff)
    return BulkStatusResponse(
        updated=result.updated,
        jobs=[JobResponse.model_validate(job) for job in result.jobs],
    )


@router.get("/jobs", response_model=JobBoardResponse)
async def job_board(
    status: list[str] | None = Query(None),
    limit: int = Query(200, ge=1, le=500),
    staff: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_session),
):
    jobs = await ops_status.list_jobs(db, status, limit)
    columns = ops_status.group_by_status(jobs)
    return JobBoardResponse(
        total=len(jobs),
        columns={k: [JobResponse.model_validate(j) for j in v] for k, v in columns.items()},
    )


@router.get("/jobs/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: uuid.UUID,
    staff: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_session),
):
    return JobResponse.model_validate(await ops_status.get_job(db, job_id))


@router.patch("/jobs/{job_id}/status", response_model=JobResponse)
async def update_job_status(
    job_id: uuid.UUID,
    body: StatusUpdateRequest,
    staff: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_session),
):
    job = await ops_status.transition_job(db, job_id, body.status, staff)
    return JobResponse.model_validate(job)
