# tests/test_routes.py
"""
HTTP surface: auth, validation and the shared error envelope.
Services are patched; these tests only exercise the FastAPI layer.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from api.app.dependencies import get_current_staff, get_session
from api.app.errors import CooldownActive, UpstreamUnavailable
from api.app.main import app
from conftest import make_listing, make_staff
from models.api_key import ApiKey
from models.processing_job import ProcessingJob
from services.ops_status import BulkStatusResult, OpsStatus
from services.processing import BulkRetryItem
from services.rate_limit import RateLimiter

WEBHOOK_SECRET = "test-webhook-secret"


@pytest.fixture
def client(db, admin):
    async def _session():
        yield db

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_current_staff] = lambda: admin
    yield TestClient(app)
    app.dependency_overrides.clear()


def _processing_job(**kwargs) -> ProcessingJob:
    now = datetime.now(timezone.utc)
    defaults = dict(
        id=uuid.uuid4(),
        listing_id=uuid.uuid4(),
        external_job_id="ext-1",
        status="completed",
        retry_count=0,
        max_retries=3,
        created_at=now,
        updated_at=now,
    )
    defaults.update(kwargs)
    return ProcessingJob(**defaults)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_requests_carry_response_time(client):
    assert "X-Response-Time" in client.get("/health").headers


def test_missing_session_is_unauthorized(client):
    del app.dependency_overrides[get_current_staff]
    resp = client.post("/admin/ops/bulk-status", json={"jobIds": [str(uuid.uuid4())], "newStatus": "scheduled"})
    assert resp.status_code == 401
    assert resp.json() == {"error": {"code": "unauthorized", "message": "Not authenticated"}}


def test_bulk_status_validation_envelope(client):
    resp = client.post("/admin/ops/bulk-status", json={"jobIds": [], "newStatus": "scheduled"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "validation_error"


def test_bulk_status_updates_jobs(client):
    listing = make_listing(ops_status="scheduled")
    result = BulkStatusResult(status=OpsStatus.SCHEDULED, jobs=[listing], changed_ids=[listing.id])
    with patch("services.ops_status.bulk_update_status", new=AsyncMock(return_value=result)) as bulk:
        resp = client.post("/admin/ops/bulk-status", json={"jobIds": [str(listing.id)], "newStatus": "scheduled"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["updated"] == 1
    assert body["jobs"][0]["ops_status"] == "scheduled"
    assert bulk.await_args.args[1] == [listing.id]


def test_bulk_status_unknown_status(client, db):
    resp = client.post("/admin/ops/bulk-status", json={"jobIds": [str(uuid.uuid4())], "newStatus": "archived"})

    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "validation_error"
    assert "archived" in error["message"]
    assert "delivered" in error["validStatuses"]
    db.execute.assert_not_awaited()


def test_assignments_require_admin_or_qc(client):
    app.dependency_overrides[get_current_staff] = lambda: make_staff(role="photographer")
    resp = client.post(
        "/admin/assignments",
        json={"listing_id": str(uuid.uuid4()), "staff_id": str(uuid.uuid4()), "role": "photographer"},
    )
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "forbidden"


def test_retry_cooldown_reports_wait(client):
    error = CooldownActive("Please wait 18 seconds before retrying", wait_seconds=18)
    with patch("services.processing.retry_job", new=AsyncMock(side_effect=error)):
        resp = client.post("/processing/retry", json={"jobId": str(uuid.uuid4())})

    assert resp.status_code == 429
    assert resp.json()["error"] == {
        "code": "cooldown",
        "message": "Please wait 18 seconds before retrying",
        "waitSeconds": 18,
    }


def test_bulk_retry_reports_per_job(client):
    ok_id, waiting_id = uuid.uuid4(), uuid.uuid4()
    items = [
        BulkRetryItem(job_id=ok_id, success=True, retry_count=1),
        BulkRetryItem(job_id=waiting_id, success=False, error="Please wait 5 seconds before retrying", wait_seconds=5),
    ]
    with patch("services.processing.retry_jobs", new=AsyncMock(return_value=items)):
        resp = client.put("/processing/retry", json={"jobIds": [str(ok_id), str(waiting_id)]})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is False
    assert body["summary"] == {"total": 2, "successful": 1, "failed": 1}
    assert body["results"][0] == {"jobId": str(ok_id), "success": True, "retryCount": 1}
    assert body["results"][1]["waitSeconds"] == 5


def test_webhook_rejects_bad_secret(client):
    resp = client.post(
        "/processing/webhook",
        json={"job_id": "ext-1", "status": "completed"},
        headers={"X-Webhook-Secret": "nope"},
    )
    assert resp.status_code == 401


def test_webhook_applies_update(client):
    job = _processing_job()
    with patch("services.processing.apply_worker_update", new=AsyncMock(return_value=job)) as apply:
        resp = client.post(
            "/processing/webhook",
            json={"job_id": "ext-1", "status": "completed", "output_key": "hdr/out.jpg"},
            headers={"X-Webhook-Secret": WEBHOOK_SECRET},
        )

    assert resp.status_code == 200
    update = apply.await_args.args[1]
    assert update.external_job_id == "ext-1"
    assert update.output_key == "hdr/out.jpg"


def test_v1_requires_api_key(client):
    resp = client.get("/v1/location/scores", params={"lat": 28.5383, "lng": -81.3792})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "unauthorized"


@pytest.fixture
def api_key():
    key = ApiKey(id=uuid.uuid4(), name="test", key_hash="x", is_active=True, rate_limit_tier="default")
    limiter = RateLimiter({"scores": 1, "default": 1})
    with patch("api.app.dependencies.authenticate_api_key", new=AsyncMock(return_value=key)), \
         patch("api.app.dependencies.get_rate_limiter", return_value=limiter):
        yield key


def test_v1_scores_envelope_and_rate_limit(client, api_key):
    params = {"lat": 28.5383, "lng": -81.3792}
    headers = {"X-API-Key": "lh_test"}
    with patch("services.location.get_life_here_scores", new=AsyncMock(return_value=({"overall": 80}, True))):
        first = client.get("/v1/location/scores", params=params, headers=headers)
        second = client.get("/v1/location/scores", params=params, headers=headers)

    assert first.status_code == 200
    body = first.json()
    assert body["success"] is True
    assert body["data"] == {"overall": 80}
    assert body["meta"]["cached"] is True
    assert set(body["meta"]) == {"requestId", "cached", "responseTime"}
    assert first.headers["X-RateLimit-Limit"] == "1"
    assert first.headers["X-RateLimit-Remaining"] == "0"

    assert second.status_code == 429
    assert second.json()["error"]["code"] == "rate_limited"
    assert second.headers["X-RateLimit-Remaining"] == "0"


def test_v1_upstream_outage(client, api_key):
    error = UpstreamUnavailable("Location data provider is unavailable")
    with patch("services.location.get_dining", new=AsyncMock(side_effect=error)):
        resp = client.get(
            "/v1/location/dining",
            params={"lat": 28.5383, "lng": -81.3792},
            headers={"X-API-Key": "lh_test"},
        )

    assert resp.status_code == 502
    assert resp.json()["error"]["code"] == "upstream_error"
