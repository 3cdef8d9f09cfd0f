# tests/test_http_clients.py
"""
Outbound clients: malformed upstream bodies surface as the client's own
error type instead of escaping as JSON or attribute errors.
"""
from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from api.app.errors import Unauthorized
from models.job import DISPATCH_PROCESSING_JOB
from models.processing_job import ProcessingJob
from services.hdr_worker import HdrWorkerError, submit_job
from services.places import PlacesError, search_nearby
from services.processing import dispatch_job
from services.staff_auth import fetch_auth_user

REAL_CLIENT = httpx.AsyncClient


def _mock_client(handler):
    def factory(**kwargs):
        return REAL_CLIENT(transport=httpx.MockTransport(handler), **kwargs)
    return factory


def _job() -> ProcessingJob:
    return ProcessingJob(
        id=uuid.uuid4(),
        listing_id=uuid.uuid4(),
        status="pending",
        input_keys=["raw/a.CR3", "raw/b.CR3"],
        retry_count=1,
    )


@pytest.fixture
def hdr_settings():
    settings = MagicMock(hdr_worker_url="http://hdr.local/", hdr_worker_api_key="k", hdr_worker_timeout=5.0)
    with patch("services.hdr_worker.get_settings", return_value=settings):
        yield settings


@pytest.mark.asyncio
async def test_submit_job_returns_worker_id(hdr_settings):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers["X-API-Key"]
        return httpx.Response(202, json={"job_id": "ext-7"})

    with patch("services.hdr_worker.httpx.AsyncClient", side_effect=_mock_client(handler)):
        assert await submit_job(_job()) == "ext-7"

    assert seen == {"url": "http://hdr.local/jobs", "key": "k"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>502 Bad Gateway</html>"),
        httpx.Response(200, json=["ext-7"]),
        httpx.Response(200, json={"status": "accepted"}),
    ],
)
async def test_submit_job_rejects_malformed_body(hdr_settings, response):
    with patch("services.hdr_worker.httpx.AsyncClient", side_effect=_mock_client(lambda request: response)):
        with pytest.raises(HdrWorkerError):
            await submit_job(_job())


@pytest.mark.asyncio
async def test_submit_job_http_error(hdr_settings):
    handler = lambda request: httpx.Response(503, text="busy")  # noqa: E731
    with patch("services.hdr_worker.httpx.AsyncClient", side_effect=_mock_client(handler)):
        with pytest.raises(HdrWorkerError, match="request failed"):
            await submit_job(_job())


@pytest.mark.asyncio
async def test_dispatch_falls_back_to_outbox_on_html_reply(db, hdr_settings):
    job = _job()
    handler = lambda request: httpx.Response(200, text="<html>oops</html>")  # noqa: E731

    with patch("services.hdr_worker.httpx.AsyncClient", side_effect=_mock_client(handler)), \
         patch("services.processing.enqueue", new=AsyncMock()) as enqueue:
        assert await dispatch_job(db, job) is False

    assert job.status == "pending"
    assert job.external_job_id is None
    args = enqueue.await_args.args
    assert args[1] == DISPATCH_PROCESSING_JOB
    assert args[2] == {"processing_job_id": str(job.id)}


@pytest.fixture
def places_settings():
    settings = MagicMock(google_places_api_key="gk", places_radius_meters=8000, places_timeout=5.0)
    with patch("services.places.get_settings", return_value=settings):
        yield settings


@pytest.mark.asyncio
async def test_places_non_json_body(places_settings):
    handler = lambda request: httpx.Response(200, text="<html>quota</html>")  # noqa: E731
    async with REAL_CLIENT(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(PlacesError, match="non-JSON"):
            await search_nearby(28.5383, -81.3792, "dining", client=client)


@pytest.mark.asyncio
async def test_places_non_object_body(places_settings):
    handler = lambda request: httpx.Response(200, json=[])  # noqa: E731
    async with REAL_CLIENT(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(PlacesError):
            await search_nearby(28.5383, -81.3792, "dining", client=client)


@pytest.mark.asyncio
async def test_places_parses_results(places_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["key"] == "gk"
        return httpx.Response(
            200,
            json={
                "status": "OK",
                "results": [
                    {
                        "place_id": "p1",
                        "name": "Cafe",
                        "geometry": {"location": {"lat": 28.54, "lng": -81.38}},
                        "types": ["cafe"],
                    }
                ],
            },
        )

    async with REAL_CLIENT(transport=httpx.MockTransport(handler)) as client:
        places = await search_nearby(28.5383, -81.3792, "dining", client=client)

    assert [p.place_id for p in places] == ["p1"]


@pytest.mark.asyncio
async def test_auth_provider_non_json_is_unauthorized():
    settings = MagicMock(supabase_url="http://auth.local", supabase_anon_key="anon", auth_timeout=5.0)
    handler = lambda request: httpx.Response(200, text="maintenance")  # noqa: E731
    with patch("services.staff_auth.get_settings", return_value=settings), \
         patch("services.staff_auth.httpx.AsyncClient", side_effect=_mock_client(handler)):
        with pytest.raises(Unauthorized):
            await fetch_auth_user("token")
