# tests/test_location_support.py
from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, patch

import pytest

from api.app.errors import Unauthorized, ValidationFailed
from conftest import scalar_result
from models.api_key import ApiKey
from services.api_cache import build_cache_key
from services.api_keys import authenticate_api_key, hash_api_key
from services.location import get_life_here_scores
from services.rate_limit import RateLimiter


def test_cache_key_is_sorted_and_rounded():
    key = build_cache_key("scores", {"profile": "family", "lng": -81.37921, "lat": 28.53834})
    assert key == "api:v1:scores:lat=28.538&lng=-81.379&profile=family"


def test_cache_key_skips_missing_params():
    assert build_cache_key("dining", {"lat": 28.5, "lng": -81.4, "cuisine": None}) == (
        "api:v1:dining:lat=28.500&lng=-81.400"
    )


def test_rate_limiter_fixed_window():
    limiter = RateLimiter({"default": 3, "scores": 100}, window_seconds=60)
    results = [limiter.check("key-1", "default", now=1000.0) for _ in range(4)]

    assert [r.success for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]
    assert results[-1].headers()["X-RateLimit-Reset"] == "1060"

    assert limiter.check("key-1", "default", now=1060.0).success is True
    assert limiter.check("key-2", "default", now=1000.5).remaining == 2


def test_rate_limiter_unknown_tier_uses_default():
    limiter = RateLimiter({"default": 5})
    assert limiter.check("k", "render", now=0.0).limit == 5


def test_hash_is_sha256_hex():
    assert len(hash_api_key("lh_test")) == 64


@pytest.mark.asyncio
async def test_missing_api_key(db):
    with pytest.raises(Unauthorized):
        await authenticate_api_key(db, None)
    db.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_invalid_api_key(db):
    db.execute.return_value = scalar_result(None)
    with pytest.raises(Unauthorized, match="Invalid API key"):
        await authenticate_api_key(db, "lh_wrong")


@pytest.mark.asyncio
async def test_valid_api_key_touches_last_used(db):
    key = ApiKey(id=uuid.uuid4(), name="dev", key_hash=hash_api_key("lh_ok"), is_active=True,
                 rate_limit_tier="default", last_used_at=None)
    db.execute.return_value = scalar_result(key)

    assert await authenticate_api_key(db, "lh_ok") is key
    assert key.last_used_at is not None


@pytest.mark.asyncio
async def test_scores_served_from_cache(db):
    cached = {"overall": 77, "label": "Very Good"}
    with patch("services.location.get_cached", new=AsyncMock(return_value=cached)), \
         patch("services.location.fetch_all_categories", new=AsyncMock()) as fetch:
        data, hit = await get_life_here_scores(db, 28.5383, -81.3792)

    assert hit is True
    assert data == cached
    fetch.assert_not_awaited()


@pytest.mark.asyncio
async def test_scores_miss_computes_and_stores(db):
    with patch("services.location.get_cached", new=AsyncMock(return_value=None)), \
         patch("services.location.fetch_all_categories", new=AsyncMock(return_value={})), \
         patch("services.location.set_cached", new=AsyncMock()) as store:
        data, hit = await get_life_here_scores(db, 28.5383, -81.3792, "family")

    assert hit is False
    assert data["profile"] == "family"
    assert store.await_args.args[1] == "api:v1:scores:lat=28.538&lng=-81.379&profile=family"


@pytest.mark.asyncio
async def test_scores_validate_input(db):
    with pytest.raises(ValidationFailed):
        await get_life_here_scores(db, 91.0, 0.0)
    with pytest.raises(ValidationFailed):
        await get_life_here_scores(db, 28.5, -81.3, "retiree")
