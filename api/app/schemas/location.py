# api/app/schemas/location.py
from __future__ import annotations

from pydantic import BaseModel, Field


class ResponseMeta(BaseModel):
    request_id: str = Field(alias="requestId")
    cached: bool
    response_time: int = Field(alias="responseTime")  # ms

    class Config:
        populate_by_name = True


class LocationEnvelope(BaseModel):
    success: bool = True
    data: dict
    meta: ResponseMeta
