# worker/main.py
"""
Background worker: polls the outbox and dispatches to handlers.
"""
from __future__ import annotations

import asyncio
import logging
import os
import platform
import sys
import time
import traceback
import uuid

# Ensure project root is on path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from api.app.config import get_settings
from db.session import session_scope
from jobs.handlers import HANDLERS, PermanentJobError
from jobs.queue import complete_job, dequeue, fail_job
from services.api_cache import purge_expired
from services.audit import log_event

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("worker")


WORKER_ID = f"worker-{platform.node()}-{uuid.uuid4().hex[:8]}"
CACHE_PURGE_INTERVAL_SECONDS = 3600


async def process_next(db, worker_id: str = WORKER_ID) -> bool:
    """Claim and run one job. Returns False when the queue is empty."""
    job = await dequeue(db, worker_id=worker_id)
    if job is None:
        return False
    # make the claim durable before running side effects
    await db.commit()

    handler = HANDLERS.get(job.job_type)
    if handler is None:
        await fail_job(db, job, f"Unknown job type: {job.job_type}", retryable=False)
        await db.commit()
        return True

    try:
        result = await handler(db, job.payload)
        await complete_job(db, job, result)
        await db.commit()

    except Exception as exc:
        tb = traceback.format_exc()

        # Revert any partial writes from the handler
        await db.rollback()
        await db.refresh(job)

        await fail_job(
            db,
            job,
            f"{exc}\n{tb}",
            retryable=not isinstance(exc, PermanentJobError),
        )
        await log_event(
            db,
            "job_failed",
            "error",
            source="worker",
            message=str(exc),
            metadata={
                "job_id": str(job.id),
                "job_type": job.job_type,
                "attempts": job.attempts,
                "trace_id": str(job.trace_id),
            },
        )
        await db.commit()

    return True


async def run_loop() -> None:
    settings = get_settings()
    logger.info(
        "Worker %s starting (poll=%.1fs, handlers=%s)",
        WORKER_ID,
        settings.worker_poll_interval,
        ", ".join(HANDLERS),
    )
    last_purge = 0.0

    while True:
        try:
            async with session_scope() as db:
                while await process_next(db):
                    pass

                if time.monotonic() - last_purge >= CACHE_PURGE_INTERVAL_SECONDS:
                    await purge_expired(db)
                    last_purge = time.monotonic()

        except Exception as exc:
            logger.exception("Worker loop error: %s", exc)

        await asyncio.sleep(settings.worker_poll_interval)


def main() -> None:
    asyncio.run(run_loop())


if __name__ == "__main__":
    main()
