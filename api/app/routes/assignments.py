# api/app/routes/assignments.py
from __future__ import annotations

from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.dependencies import get_current_staff, get_session, require_roles
from api.app.schemas.assignments import (
    AssignmentBatchRequest,
    AssignmentBatchResponse,
    AssignmentItem,
    AssignmentResultItem,
    BatchSummary,
    CandidateListResponse,
    StaffCandidateResponse,
)
from models.staff import Staff
from services import assignments

router = APIRouter(prefix="/admin/assignments", tags=["assignments"])


@router.get("", response_model=CandidateListResponse)
async def list_candidates(
    role: str = Query("all"),
    on_date: date | None = Query(None, alias="date"),
    staff: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_session),
):
    day = on_date or datetime.now(timezone.utc).date()
    candidates = await assignments.list_candidates(db, role, day)
    return CandidateListResponse(
        date=day,
        staff=[StaffCandidateResponse.model_validate(c) for c in candidates],
    )


@router.post("", response_model=AssignmentBatchResponse)
async def create_assignments(
    body: AssignmentBatchRequest | AssignmentItem,
    staff: Staff = Depends(require_roles("admin", "qc")),
    db: AsyncSession = Depends(get_session),
):
    items = body.assignments if isinstance(body, AssignmentBatchRequest) else [body]
    results = await assignments.create_assignments(
        db,
        [assignments.AssignmentRequest(**item.model_dump()) for item in items],
        staff,
    )
    failed = sum(1 for r in results if not r.success)
    return AssignmentBatchResponse(
        success=failed == 0,
        results=[AssignmentResultItem.model_validate(r) for r in results],
        summary=BatchSummary(total=len(results), successful=len(results) - failed, failed=failed),
    )
