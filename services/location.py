# services/location.py
"""
Cached location lookups behind the v1 API.
"""
from __future__ import annotations

import logging
from dataclasses import asdict

from sqlalchemy.ext.asyncio import AsyncSession

from api.app.config import get_settings
from api.app.errors import UpstreamUnavailable, ValidationFailed
from services.api_cache import build_cache_key, get_cached, set_cached
from services.life_here import PROFILE_WEIGHTS, compute_life_here_score
from services.places import PlacesError, fetch_all_categories, search_nearby

logger = logging.getLogger(__name__)


def validate_coordinates(lat: float, lng: float) -> None:
    if not -90 <= lat <= 90:
        raise ValidationFailed("lat must be between -90 and 90")
    if not -180 <= lng <= 180:
        raise ValidationFailed("lng must be between -180 and 180")


async def get_life_here_scores(
    db: AsyncSession,
    lat: float,
    lng: float,
    profile: str = "balanced",
) -> tuple[dict, bool]:
    """Returns (score payload, served_from_cache)."""
    validate_coordinates(lat, lng)
    if profile not in PROFILE_WEIGHTS:
        raise ValidationFailed(
            f"Invalid profile '{profile}'. Must be one of: {', '.join(PROFILE_WEIGHTS)}"
        )

    key = build_cache_key("scores", {"lat": lat, "lng": lng, "profile": profile})
    cached = await get_cached(db, key)
    if cached is not None:
        return cached, True

    try:
        places = await fetch_all_categories(lat, lng)
    except PlacesError as exc:
        logger.error("Life Here score unavailable for (%.3f, %.3f): %s", lat, lng, exc)
        raise UpstreamUnavailable("Location data provider is unavailable") from exc

    payload = compute_life_here_score(lat, lng, places, profile)
    payload["location"] = {"lat": lat, "lng": lng}
    await set_cached(db, key, payload, get_settings().cache_ttl_scores_seconds)
    return payload, False


async def get_dining(db: AsyncSession, lat: float, lng: float, limit: int = 20) -> tuple[dict, bool]:
    validate_coordinates(lat, lng)

    key = build_cache_key("dining", {"lat": lat, "lng": lng, "limit": limit})
    cached = await get_cached(db, key)
    if cached is not None:
        return cached, True

    try:
        places = await search_nearby(lat, lng, "dining")
    except PlacesError as exc:
        logger.error("Dining lookup failed for (%.3f, %.3f): %s", lat, lng, exc)
        raise UpstreamUnavailable("Location data provider is unavailable") from exc

    payload = {
        "location": {"lat": lat, "lng": lng},
        "count": len(places),
        "places": [asdict(p) for p in places[:limit]],
    }
    await set_cached(db, key, payload, get_settings().cache_ttl_dining_seconds)
    return payload, False
