# jobs/queue.py
"""
Postgres-backed outbox.

Rows are inserted in the same transaction as the mutation that caused them,
so a side effect is only ever scheduled for a change that actually committed.
The worker claims rows with SKIP LOCKED, so several workers can share the table.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.config import get_settings
from models.job import Job

logger = logging.getLogger(__name__)

LOCK_TIMEOUT_SECONDS = 60
MAX_BACKOFF_SECONDS = 600


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def find_pending(db: AsyncSession, job_type: str, match: dict) -> Job | None:
    """A not-yet-run row of `job_type` whose payload contains `match`."""
    result = await db.execute(
        select(Job)
        .where(
            Job.job_type == job_type,
            Job.status == "pending",
            Job.payload.contains(match),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def enqueue(
    db: AsyncSession,
    job_type: str,
    payload: dict,
    max_attempts: int | None = None,
    delay_seconds: int = 0,
    dedupe_on: dict | None = None,
) -> Job:
    """
    Add an outbox row. With `dedupe_on`, an existing pending row whose payload
    contains those keys is returned instead of adding a second one.
    """
    if dedupe_on:
        existing = await find_pending(db, job_type, dedupe_on)
        if existing is not None:
            logger.info("Job %s [%s] already pending, not enqueued again", existing.id, job_type)
            return existing

    job = Job(
        job_type=job_type,
        status="pending",
        payload=payload,
        attempts=0,
        max_attempts=max_attempts or get_settings().worker_max_retries,
        run_after=utcnow() + timedelta(seconds=delay_seconds),
        trace_id=uuid.uuid4(),
    )
    db.add(job)
    await db.flush()
    logger.info("Enqueued %s job %s trace=%s", job.job_type, job.id, job.trace_id)
    return job


def _claimable(now: datetime):
    stale_cutoff = now - timedelta(seconds=LOCK_TIMEOUT_SECONDS)
    return or_(
        and_(Job.status == "pending", Job.run_after <= now),
        # worker died holding the lock
        and_(Job.status == "processing", Job.locked_at <= stale_cutoff),
    )


async def dequeue(
    db: AsyncSession,
    worker_id: str,
    job_types: list[str] | None = None,
) -> Job | None:
    """Claim the next runnable row for `worker_id`, or None when nothing is due."""
    now = utcnow()
    stmt = (
        select(Job)
        .where(_claimable(now))
        .order_by(Job.run_after.asc(), Job.created_at.asc())
        .limit(1)
        .with_for_update(skip_locked=True)
    )
    if job_types:
        stmt = stmt.where(Job.job_type.in_(job_types))

    job = (await db.execute(stmt)).scalar_one_or_none()
    if job is None:
        return None

    job.status = "processing"
    job.locked_by = worker_id
    job.locked_at = now
    job.attempts += 1
    await db.flush()

    logger.info(
        "%s picked up %s job %s (attempt %d of %d) trace=%s",
        worker_id,
        job.job_type,
        job.id,
        job.attempts,
        job.max_attempts,
        job.trace_id,
    )
    return job


def _release(job: Job) -> None:
    job.locked_by = None
    job.locked_at = None


async def complete_job(db: AsyncSession, job: Job, result: dict | None = None) -> None:
    job.status = "complete"
    job.result = result or {}
    job.error = None
    _release(job)
    await db.flush()
    logger.info("%s job %s done trace=%s", job.job_type, job.id, job.trace_id)


def backoff_seconds(attempts: int) -> int:
    return min(2 ** attempts, MAX_BACKOFF_SECONDS)


async def fail_job(
    db: AsyncSession,
    job: Job,
    error: str,
    retryable: bool = True,
) -> None:
    """Reschedule with exponential backoff, or give up for good."""
    job.error = error
    _release(job)

    if retryable and job.attempts < job.max_attempts:
        delay = backoff_seconds(job.attempts)
        job.status = "pending"
        job.run_after = utcnow() + timedelta(seconds=delay)
        logger.warning(
            "%s job %s failed (attempt %d of %d), next try in %ds trace=%s",
            job.job_type,
            job.id,
            job.attempts,
            job.max_attempts,
            delay,
            job.trace_id,
        )
    else:
        job.status = "failed"
        logger.error(
            "%s job %s gave up after %d attempt(s) trace=%s",
            job.job_type,
            job.id,
            job.attempts,
            job.trace_id,
        )

    await db.flush()
