# services/places.py
"""
Google Places nearby search, grouped into the categories used for scoring.
"""
from __future__ import annotations

import asyncio
import logging

import httpx

from api.app.config import get_settings
from services.life_here import Place, haversine_miles

logger = logging.getLogger(__name__)

NEARBY_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"

PLACE_CATEGORIES: dict[str, tuple[str, ...]] = {
    "dining": ("restaurant", "cafe"),
    "shopping": ("supermarket",),
    "fitness": ("gym", "park"),
    "entertainment": ("movie_theater", "bowling_alley", "night_club", "bar"),
    "services": ("pharmacy", "bank", "gas_station"),
}

OK_STATUSES = ("OK", "ZERO_RESULTS")


class PlacesError(Exception):
    pass


def parse_place(raw: dict, lat: float, lng: float) -> Place:
    location = (raw.get("geometry") or {}).get("location") or {}
    distance = None
    if "lat" in location and "lng" in location:
        distance = round(haversine_miles(lat, lng, location["lat"], location["lng"]), 2)
    return Place(
        name=raw.get("name", ""),
        types=list(raw.get("types") or []),
        rating=raw.get("rating"),
        distance_miles=distance,
        is_open=(raw.get("opening_hours") or {}).get("open_now"),
        address=raw.get("vicinity"),
        place_id=raw.get("place_id"),
    )


async def _search_type(
    client: httpx.AsyncClient,
    lat: float,
    lng: float,
    place_type: str,
    radius: int,
    api_key: str,
) -> list[dict]:
    resp = await client.get(
        NEARBY_SEARCH_URL,
        params={
            "location": f"{lat},{lng}",
            "radius": radius,
            "type": place_type,
            "key": api_key,
        },
    )
    resp.raise_for_status()
    try:
        data = resp.json()
    except ValueError as exc:
        raise PlacesError(f"Places search for {place_type} returned a non-JSON response") from exc
    if not isinstance(data, dict):
        raise PlacesError(f"Places search for {place_type} returned an unexpected response body")
    if data.get("status") not in OK_STATUSES:
        raise PlacesError(f"Places search for {place_type} failed: {data.get('status')}")
    return data.get("results", [])


async def search_nearby(
    lat: float,
    lng: float,
    category: str,
    radius: int | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[Place]:
    """Places of one category around a point, nearest first, de-duplicated."""
    if category not in PLACE_CATEGORIES:
        raise ValueError(f"Unknown place category: {category}")

    settings = get_settings()
    if not settings.google_places_api_key:
        raise PlacesError("Google Places API key is not configured")
    radius = radius or settings.places_radius_meters

    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=settings.places_timeout)
    try:
        batches = await asyncio.gather(
            *(
                _search_type(client, lat, lng, t, radius, settings.google_places_api_key)
                for t in PLACE_CATEGORIES[category]
            )
        )
    except httpx.HTTPError as exc:
        raise PlacesError(f"Places request failed: {exc}") from exc
    finally:
        if owns_client:
            await client.aclose()

    seen: set[str] = set()
    places: list[Place] = []
    for raw in (r for batch in batches for r in batch):
        key = raw.get("place_id") or raw.get("name", "")
        if key in seen:
            continue
        seen.add(key)
        places.append(parse_place(raw, lat, lng))

    places.sort(key=lambda p: p.distance_miles if p.distance_miles is not None else float("inf"))
    logger.info("Places %s near (%.3f, %.3f): %d results", category, lat, lng, len(places))
    return places


async def fetch_all_categories(lat: float, lng: float) -> dict[str, list[Place]]:
    settings = get_settings()
    async with httpx.AsyncClient(timeout=settings.places_timeout) as client:
        results = await asyncio.gather(
            *(search_nearby(lat, lng, c, client=client) for c in PLACE_CATEGORIES)
        )
    return dict(zip(PLACE_CATEGORIES, results))
