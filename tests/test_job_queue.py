# tests/test_job_queue.py
"""
Tests for the outbox queue.

These tests verify the queue interface without requiring a real database.
For full integration tests, use a PostgreSQL test container.
"""
from __future__ import annotations

import uuid
from datetime import timedelta

import pytest

from jobs.queue import MAX_BACKOFF_SECONDS, backoff_seconds, complete_job, dequeue, enqueue, fail_job, utcnow
from models.job import DISPATCH_PROCESSING_JOB, SEND_NOTIFICATION, Job
from conftest import scalar_result


def _make_job(**kwargs) -> Job:
    defaults = dict(
        id=uuid.uuid4(),
        job_type=SEND_NOTIFICATION,
        status="processing",
        payload={"recipient": {"email": "pat@aerialshots.media"}},
        attempts=1,
        max_attempts=3,
        locked_by="worker-abc",
        locked_at=utcnow(),
        run_after=utcnow(),
        trace_id=uuid.uuid4(),
    )
    defaults.update(kwargs)
    return Job(**defaults)


@pytest.mark.parametrize("attempts,expected", [(1, 2), (3, 8), (9, 512), (10, MAX_BACKOFF_SECONDS), (30, MAX_BACKOFF_SECONDS)])
def test_backoff_is_exponential_and_capped(attempts, expected):
    assert backoff_seconds(attempts) == expected


@pytest.mark.asyncio
async def test_enqueue_adds_pending_row(db):
    before = utcnow()
    job = await enqueue(db, DISPATCH_PROCESSING_JOB, {"processing_job_id": "x"}, delay_seconds=30)

    db.add.assert_called_once_with(job)
    db.flush.assert_awaited_once()
    db.execute.assert_not_awaited()
    assert job.status == "pending"
    assert job.attempts == 0
    assert job.max_attempts == 3
    assert job.run_after >= before + timedelta(seconds=30)


@pytest.mark.asyncio
async def test_dequeue_claims_job(db):
    job = _make_job(status="pending", attempts=0, locked_by=None, locked_at=None)
    db.execute.return_value = scalar_result(job)

    claimed = await dequeue(db, "worker-1")

    assert claimed is job
    assert job.status == "processing"
    assert job.locked_by == "worker-1"
    assert job.attempts == 1


@pytest.mark.asyncio
async def test_dequeue_empty_queue(db):
    db.execute.return_value = scalar_result(None)
    assert await dequeue(db, "worker-1") is None
    db.flush.assert_not_awaited()


@pytest.mark.asyncio
async def test_retryable_failure_goes_back_to_pending(db):
    job = _make_job(attempts=1)
    await fail_job(db, job, "Resend returned 503")

    assert job.status == "pending"
    assert job.locked_by is None
    assert job.error == "Resend returned 503"
    assert job.run_after > utcnow()


@pytest.mark.asyncio
async def test_exhausted_job_is_failed(db):
    job = _make_job(attempts=3)
    await fail_job(db, job, "still down")
    assert job.status == "failed"


@pytest.mark.asyncio
async def test_permanent_failure_skips_retries(db):
    job = _make_job(attempts=1)
    await fail_job(db, job, "no recipient", retryable=False)
    assert job.status == "failed"


@pytest.mark.asyncio
async def test_complete_job_releases_lock(db):
    job = _make_job(error="earlier failure")
    await complete_job(db, job, {"ok": True})

    assert job.status == "complete"
    assert job.result == {"ok": True}
    assert job.error is None
    assert job.locked_by is None


@pytest.mark.asyncio
async def test_enqueue_reuses_pending_duplicate(db):
    pending = _make_job(job_type=DISPATCH_PROCESSING_JOB, status="pending")
    db.execute.return_value = scalar_result(pending)

    payload = {"processing_job_id": "x"}
    job = await enqueue(db, DISPATCH_PROCESSING_JOB, payload, dedupe_on=payload)

    assert job is pending
    db.add.assert_not_called()


@pytest.mark.asyncio
async def test_enqueue_with_dedupe_adds_when_none_pending(db):
    db.execute.return_value = scalar_result(None)
    payload = {"processing_job_id": "x"}
    job = await enqueue(db, DISPATCH_PROCESSING_JOB, payload, dedupe_on=payload)

    db.add.assert_called_once_with(job)
