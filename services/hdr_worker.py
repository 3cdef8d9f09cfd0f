# services/hdr_worker.py
"""
Client for the external GPU worker that fuses HDR brackets.
"""
from __future__ import annotations

import logging

import httpx

from api.app.config import get_settings
from models.processing_job import ProcessingJob

logger = logging.getLogger(__name__)


class HdrWorkerError(Exception):
    pass


def build_submission(job: ProcessingJob) -> dict:
    return {
        "job_id": str(job.id),
        "listing_id": str(job.listing_id),
        "input_keys": list(job.input_keys or []),
        "bracket_count": job.bracket_count or len(job.input_keys or []),
        "retry": job.retry_count,
    }


async def submit_job(job: ProcessingJob) -> str:
    """Send a job to the worker. Returns the worker's job id."""
    settings = get_settings()
    if not settings.hdr_worker_url:
        raise HdrWorkerError("HDR worker URL is not configured")

    url = f"{settings.hdr_worker_url.rstrip('/')}/jobs"
    try:
        async with httpx.AsyncClient(timeout=settings.hdr_worker_timeout) as client:
            resp = await client.post(
                url,
                json=build_submission(job),
                headers={"X-API-Key": settings.hdr_worker_api_key},
            )
            resp.raise_for_status()
    except httpx.HTTPError as exc:
        raise HdrWorkerError(f"HDR worker request failed: {exc}") from exc

    try:
        data = resp.json()
    except ValueError as exc:
        raise HdrWorkerError("HDR worker returned a non-JSON response") from exc
    if not isinstance(data, dict):
        raise HdrWorkerError("HDR worker returned an unexpected response body")

    external_id = data.get("job_id") or data.get("id")
    if not external_id:
        raise HdrWorkerError("HDR worker response did not include a job id")

    logger.info("Submitted processing job %s to HDR worker as %s", job.id, external_id)
    return str(external_id)
