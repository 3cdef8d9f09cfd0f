# api/app/routes/processing.py
from __future__ import annotations

import hmac
import uuid

from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.config import get_settings
from api.app.dependencies import get_current_staff, get_session
from api.app.errors import Unauthorized
from api.app.schemas.processing import (
    BulkRetryItemResponse,
    BulkRetryRequest,
    BulkRetryResponse,
    BulkRetrySummary,
    ProcessingJobResponse,
    RetryRequest,
    RetryResponse,
    WorkerWebhookPayload,
)
from models.staff import Staff
from services import processing

router = APIRouter(prefix="/processing", tags=["processing"])


@router.post("/retry", response_model=RetryResponse)
async def retry_job(
    body: RetryRequest,
    staff: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_session),
):
    outcome = await processing.retry_job(db, body.job_id, staff)
    return RetryResponse(
        job=ProcessingJobResponse.model_validate(outcome.job),
        retry_count=outcome.retry_count,
        dispatched=outcome.dispatched,
    )


@router.put("/retry", response_model=BulkRetryResponse, response_model_exclude_none=True)
async def retry_jobs(
    body: BulkRetryRequest,
    staff: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_session),
):
    items = await processing.retry_jobs(db, body.job_ids, staff)
    failed = sum(1 for i in items if not i.success)
    return BulkRetryResponse(
        success=failed == 0,
        results=[BulkRetryItemResponse.model_validate(i) for i in items],
        summary=BulkRetrySummary(total=len(items), successful=len(items) - failed, failed=failed),
    )


@router.get("/jobs/{job_id}", response_model=ProcessingJobResponse)
async def get_processing_job(
    job_id: uuid.UUID,
    staff: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_session),
):
    return ProcessingJobResponse.model_validate(await processing.get_processing_job(db, job_id))


@router.post("/webhook", response_model=ProcessingJobResponse)
async def worker_webhook(
    body: WorkerWebhookPayload,
    x_webhook_secret: str | None = Header(None, alias="X-Webhook-Secret"),
    db: AsyncSession = Depends(get_session),
):
    secret = get_settings().hdr_webhook_secret
    if not secret or not hmac.compare_digest(x_webhook_secret or "", secret):
        raise Unauthorized("Invalid webhook secret")

    job = await processing.apply_worker_update(
        db,
        processing.WorkerUpdate(
            external_job_id=body.job_id,
            status=body.status,
            output_key=body.output_key,
            processing_time_ms=body.processing_time_ms,
            metrics=body.metrics,
            error_message=body.error,
            can_retry=body.can_retry,
        ),
    )
    return ProcessingJobResponse.model_validate(job)
