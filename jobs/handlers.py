# jobs/handlers.py
"""
Outbox handlers, one per job type.

Handlers must be safe to run more than once for the same payload: a worker can
die after the side effect but before complete_job commits.
"""
from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from jobs.queue import utcnow
from models.job import DISPATCH_PROCESSING_JOB, SEND_NOTIFICATION
from models.processing_job import ProcessingJob
from services.hdr_worker import submit_job
from services.notifications import NotificationError, notification_from_payload, send_email

logger = logging.getLogger(__name__)


class PermanentJobError(Exception):
    """The job can never succeed; do not retry it."""


async def handle_send_notification(db: AsyncSession, payload: dict) -> dict:
    try:
        notification = notification_from_payload(payload)
    except NotificationError as exc:
        raise PermanentJobError(str(exc)) from exc

    message_id = await send_email(notification)
    return {"message_id": message_id, "recipient": notification.recipient_email}


async def handle_dispatch_processing_job(db: AsyncSession, payload: dict) -> dict:
    try:
        job_id = uuid.UUID(payload["processing_job_id"])
    except (KeyError, ValueError) as exc:
        raise PermanentJobError(f"Bad dispatch payload: {payload}") from exc

    job = await db.get(ProcessingJob, job_id, with_for_update=True)
    if job is None:
        raise PermanentJobError(f"Processing job {job_id} no longer exists")

    # already dispatched, retried again, or cancelled since this row was queued
    if job.status != "pending":
        logger.info("Skipping dispatch of processing job %s (status=%s)", job.id, job.status)
        return {"skipped": True, "status": job.status}

    external_id = await submit_job(job)
    job.external_job_id = external_id
    job.status = "queued"
    job.queued_at = job.queued_at or utcnow()
    await db.flush()
    return {"external_job_id": external_id}


HANDLERS = {
    SEND_NOTIFICATION: handle_send_notification,
    DISPATCH_PROCESSING_JOB: handle_dispatch_processing_job,
}
