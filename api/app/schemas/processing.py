# api/app/schemas/processing.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class ProcessingJobResponse(BaseModel):
    id: uuid.UUID
    listing_id: uuid.UUID
    external_job_id: str | None = None
    status: str
    bracket_count: int | None = None
    output_key: str | None = None
    queued_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    processing_time_ms: int | None = None
    error_message: str | None = None
    retry_count: int
    max_retries: int
    last_retry_at: datetime | None = None
    can_retry: bool | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RetryRequest(BaseModel):
    job_id: uuid.UUID = Field(alias="jobId")

    class Config:
        populate_by_name = True


class BulkRetryRequest(BaseModel):
    job_ids: list[uuid.UUID] = Field(alias="jobIds", min_length=1)

    class Config:
        populate_by_name = True


class RetryResponse(BaseModel):
    success: bool = True
    job: ProcessingJobResponse
    retry_count: int = Field(alias="retryCount")
    dispatched: bool

    class Config:
        populate_by_name = True


class BulkRetryItemResponse(BaseModel):
    job_id: uuid.UUID = Field(alias="jobId")
    success: bool
    error: str | None = None
    wait_seconds: int | None = Field(None, alias="waitSeconds")
    retry_count: int | None = Field(None, alias="retryCount")

    class Config:
        from_attributes = True
        populate_by_name = True


class BulkRetrySummary(BaseModel):
    total: int
    successful: int
    failed: int


class BulkRetryResponse(BaseModel):
    success: bool
    results: list[BulkRetryItemResponse]
    summary: BulkRetrySummary


class WorkerWebhookPayload(BaseModel):
    job_id: str
    status: Literal["processing", "completed", "failed"]
    output_key: str | None = None
    processing_time_ms: int | None = None
    metrics: dict | None = None
    error: str | None = None
    can_retry: bool | None = None
