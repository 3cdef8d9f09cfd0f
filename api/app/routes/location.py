# api/app/routes/location.py
from __future__ import annotations

import time
import uuid

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.dependencies import get_session, rate_limited
from api.app.schemas.location import LocationEnvelope, ResponseMeta
from services import location
from services.rate_limit import RateLimitResult

router = APIRouter(prefix="/location", tags=["location"])


def _envelope(data: dict, cached: bool, started: float) -> LocationEnvelope:
    return LocationEnvelope(
        data=data,
        meta=ResponseMeta(
            request_id=uuid.uuid4().hex,
            cached=cached,
            response_time=round((time.monotonic() - started) * 1000),
        ),
    )


@router.get("/scores", response_model=LocationEnvelope)
async def life_here_scores(
    response: Response,
    lat: float = Query(...),
    lng: float = Query(...),
    profile: str = Query("balanced"),
    limit: RateLimitResult = Depends(rate_limited("scores")),
    db: AsyncSession = Depends(get_session),
):
    started = time.monotonic()
    response.headers.update(limit.headers())
    data, cached = await location.get_life_here_scores(db, lat, lng, profile)
    return _envelope(data, cached, started)


@router.get("/dining", response_model=LocationEnvelope)
async def dining(
    response: Response,
    lat: float = Query(...),
    lng: float = Query(...),
    limit: int = Query(20, ge=1, le=60),
    rate: RateLimitResult = Depends(rate_limited("default")),
    db: AsyncSession = Depends(get_session),
):
    started = time.monotonic()
    response.headers.update(rate.headers())
    data, cached = await location.get_dining(db, lat, lng, limit)
    return _envelope(data, cached, started)
