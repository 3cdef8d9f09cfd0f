# services/processing.py
"""
HDR processing jobs: manual retry control and worker status updates.

A failed job may be retried while retry_count < max_retries, it has not been
flagged non-retryable (can_retry is False), and the last retry is older than
the cooldown. The retry itself is a compare-and-swap on (status, retry_count),
so two concurrent retries of the same job cannot both win.
"""
from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.config import get_settings
from api.app.errors import AppError, CooldownActive, NotFound, StateConflict, ValidationFailed
from jobs.queue import enqueue
from models.job import DISPATCH_PROCESSING_JOB
from models.media_asset import MediaAsset
from models.processing_job import ProcessingJob
from models.staff import Staff
from services.hdr_worker import HdrWorkerError, submit_job
from services.audit import log_event

logger = logging.getLogger(__name__)

MAX_BULK_RETRY = 50
FINAL_STATUSES = frozenset({"completed", "cancelled"})
WORKER_STATUSES = ("processing", "completed", "failed")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def cooldown_wait_seconds(last_retry_at: datetime | None, now: datetime, cooldown_seconds: int) -> int:
    """Whole seconds left before another retry is allowed; 0 when clear."""
    if last_retry_at is None:
        return 0
    elapsed_ms = (now - last_retry_at).total_seconds() * 1000
    remaining_ms = cooldown_seconds * 1000 - elapsed_ms
    if remaining_ms <= 0:
        return 0
    return math.ceil(remaining_ms / 1000)


def check_retry_eligibility(job: ProcessingJob, now: datetime, cooldown_seconds: int) -> None:
    """Raise if `job` cannot be retried at `now`."""
    if job.status != "failed":
        raise StateConflict(f"Can only retry failed jobs. Current status: {job.status}")

    if job.retry_count >= job.max_retries:
        raise StateConflict(f"Maximum retry attempts ({job.max_retries}) exceeded")

    if job.can_retry is False:
        raise StateConflict("This job has been marked as non-retryable")

    wait = cooldown_wait_seconds(job.last_retry_at, now, cooldown_seconds)
    if wait > 0:
        raise CooldownActive(f"Please wait {wait} seconds before retrying", wait_seconds=wait)


@dataclass
class RetryOutcome:
    job: ProcessingJob
    retry_count: int
    dispatched: bool


@dataclass
class BulkRetryItem:
    job_id: uuid.UUID
    success: bool
    error: str | None = None
    wait_seconds: int | None = None
    retry_count: int | None = None


async def get_processing_job(db: AsyncSession, job_id: uuid.UUID) -> ProcessingJob:
    job = await db.get(ProcessingJob, job_id)
    if job is None:
        raise NotFound("Processing job not found")
    return job


async def _set_asset_status(db: AsyncSession, job_id: uuid.UUID, qc_status: str) -> None:
    await db.execute(
        update(MediaAsset)
        .where(MediaAsset.processing_job_id == job_id)
        .values(qc_status=qc_status)
        .execution_options(synchronize_session=False)
    )


async def dispatch_job(db: AsyncSession, job: ProcessingJob) -> bool:
    """
    Submit a pending job to the HDR worker.

    On failure the job stays pending and a DISPATCH_PROCESSING_JOB outbox row is
    written so the background worker keeps trying.
    """
    try:
        external_id = await submit_job(job)
    except HdrWorkerError as exc:
        logger.warning("Dispatch of processing job %s deferred: %s", job.id, exc)
        payload = {"processing_job_id": str(job.id)}
        await enqueue(db, DISPATCH_PROCESSING_JOB, payload, dedupe_on=payload)
        return False

    job.external_job_id = external_id
    job.status = "queued"
    job.queued_at = utcnow()
    await db.flush()
    return True


async def retry_job(
    db: AsyncSession,
    job_id: uuid.UUID,
    actor: Staff | None = None,
) -> RetryOutcome:
    settings = get_settings()
    cooldown = settings.processing_retry_cooldown_seconds

    job = await get_processing_job(db, job_id)
    now = utcnow()
    check_retry_eligibility(job, now, cooldown)

    expected = job.retry_count
    result = await db.execute(
        update(ProcessingJob)
        .where(
            ProcessingJob.id == job.id,
            ProcessingJob.status == "failed",
            ProcessingJob.retry_count == expected,
        )
        .values(
            status="pending",
            retry_count=expected + 1,
            last_retry_at=now,
            error_message=None,
            queued_at=None,
            started_at=None,
            completed_at=None,
        )
        .returning(ProcessingJob)
        .execution_options(synchronize_session="fetch")
    )
    job = result.scalar_one_or_none()
    if job is None:
        # someone else retried between our read and the swap
        raise CooldownActive("A retry for this job is already in progress", wait_seconds=cooldown)

    await _set_asset_status(db, job.id, "processing")
    dispatched = await dispatch_job(db, job)

    await log_event(
        db,
        event_type="processing_retry",
        level="info",
        source="processing",
        message=f"Retry {job.retry_count}/{job.max_retries} for processing job {job.id}",
        metadata={
            "processing_job_id": str(job.id),
            "listing_id": str(job.listing_id),
            "retry_count": job.retry_count,
            "dispatched": dispatched,
        },
        actor_id=actor.id if actor else None,
    )
    return RetryOutcome(job=job, retry_count=job.retry_count, dispatched=dispatched)


async def retry_jobs(
    db: AsyncSession,
    job_ids: list[uuid.UUID],
    actor: Staff | None = None,
) -> list[BulkRetryItem]:
    if not job_ids:
        raise ValidationFailed("jobIds must be a non-empty array")
    if len(job_ids) > MAX_BULK_RETRY:
        raise ValidationFailed(f"Cannot retry more than {MAX_BULK_RETRY} jobs at once")

    items: list[BulkRetryItem] = []
    for job_id in dict.fromkeys(job_ids):
        try:
            async with db.begin_nested():
                outcome = await retry_job(db, job_id, actor)
        except CooldownActive as exc:
            items.append(BulkRetryItem(job_id, False, exc.message, wait_seconds=exc.wait_seconds))
            continue
        except AppError as exc:
            items.append(BulkRetryItem(job_id, False, exc.message))
            continue
        except SQLAlchemyError as exc:
            logger.error("Retry of processing job %s failed: %s", job_id, exc)
            items.append(BulkRetryItem(job_id, False, "Failed to update job"))
            continue
        items.append(BulkRetryItem(job_id, True, retry_count=outcome.retry_count))

    logger.info(
        "Bulk retry: %d/%d succeeded",
        sum(1 for i in items if i.success),
        len(items),
    )
    return items


@dataclass
class WorkerUpdate:
    external_job_id: str
    status: str
    output_key: str | None = None
    processing_time_ms: int | None = None
    metrics: dict | None = None
    error_message: str | None = None
    can_retry: bool | None = None


async def apply_worker_update(db: AsyncSession, update_: WorkerUpdate) -> ProcessingJob:
    """Apply a status report from the HDR worker webhook."""
    if update_.status not in WORKER_STATUSES:
        raise ValidationFailed(
            f"Invalid status '{update_.status}'. Must be one of: {', '.join(WORKER_STATUSES)}"
        )

    result = await db.execute(
        select(ProcessingJob)
        .where(ProcessingJob.external_job_id == update_.external_job_id)
        .with_for_update()
    )
    job = result.scalar_one_or_none()
    if job is None:
        raise NotFound("Processing job not found")

    now = utcnow()
    job.webhook_received_at = now

    if job.status in FINAL_STATUSES:
        logger.info(
            "Ignoring %s update for processing job %s already %s",
            update_.status,
            job.id,
            job.status,
        )
        await db.flush()
        return job

    if update_.status == "processing":
        job.status = "processing"
        job.started_at = job.started_at or now

    elif update_.status == "completed":
        job.status = "completed"
        job.completed_at = now
        job.output_key = update_.output_key
        job.processing_time_ms = update_.processing_time_ms
        job.metrics = update_.metrics or {}
        job.error_message = None
        await _set_asset_status(db, job.id, "ready_for_qc")

    else:
        job.status = "failed"
        job.completed_at = now
        job.error_message = update_.error_message or "Processing failed"
        if update_.can_retry is not None:
            job.can_retry = update_.can_retry
        await _set_asset_status(db, job.id, "pending")

    await db.flush()

    await log_event(
        db,
        event_type=f"processing_{update_.status}",
        level="error" if update_.status == "failed" else "info",
        source="hdr_worker",
        message=f"Processing job {job.id} reported {update_.status}",
        metadata={
            "processing_job_id": str(job.id),
            "external_job_id": update_.external_job_id,
            "error": job.error_message,
        },
    )
    return job
