# tests/test_notifications.py
from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from models.job import SEND_NOTIFICATION
from services.notifications import (
    Notification,
    NotificationError,
    notification_from_payload,
    queue_notification,
    send_email,
    status_label,
)


def _notification(**data) -> Notification:
    return Notification("photographer_assigned", "Pat", "pat@aerialshots.media", data)


def test_subject_fills_template():
    assert _notification(listing_address="123 Lake Eola Dr").subject == "New shoot assigned: 123 Lake Eola Dr"


def test_subject_tolerates_missing_fields():
    assert _notification().subject == "New shoot assigned: "


def test_status_label():
    assert status_label("ready_for_qc") == "Ready For Qc"


def test_render_text_links_to_job():
    text = _notification(listing_id="abc", scheduled_at="2026-03-02T14:00:00Z").render_text()
    assert text.startswith("Hi Pat,")
    assert "Scheduled: 2026-03-02T14:00:00Z" in text
    assert text.endswith("/admin/ops/jobs/abc")


def test_payload_defaults():
    n = notification_from_payload({"recipient": {"email": "a@b.c"}})
    assert n.recipient_name == "there"
    assert n.notification_type == "status_changed"
    assert n.data == {}


@pytest.mark.asyncio
async def test_queue_notification_enqueues(db):
    with patch("services.notifications.enqueue", new=AsyncMock()) as enqueue:
        await queue_notification(db, "editor_assigned", "Eli", "eli@aerialshots.media", {"listing_id": "x"})

    args = enqueue.await_args.args
    assert args[1] == SEND_NOTIFICATION
    assert args[2]["recipient"] == {"name": "Eli", "email": "eli@aerialshots.media"}


@pytest.mark.asyncio
async def test_queue_notification_without_email(db):
    with patch("services.notifications.enqueue", new=AsyncMock()) as enqueue:
        assert await queue_notification(db, "editor_assigned", "Eli", None, {}) is None
    enqueue.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_email_requires_configuration():
    settings = MagicMock(email_configured=False)
    with patch("services.notifications.get_settings", return_value=settings):
        with pytest.raises(NotificationError):
            await send_email(_notification())


@pytest.mark.asyncio
async def test_send_email_posts_to_resend():
    sent = {}

    def handler(request: httpx.Request) -> httpx.Response:
        sent["auth"] = request.headers["Authorization"]
        sent["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "msg_123"})

    settings = MagicMock(
        email_configured=True,
        resend_api_key="re_test",
        notification_from_email="ops@aerialshots.media",
        portal_base_url="http://localhost:3000",
    )
    real_client = httpx.AsyncClient

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    with patch("services.notifications.get_settings", return_value=settings), \
         patch("services.notifications.httpx.AsyncClient", side_effect=client_factory):
        message_id = await send_email(_notification(listing_address="1 Main St"))

    assert message_id == "msg_123"
    assert sent["auth"] == "Bearer re_test"
    assert sent["body"]["to"] == ["pat@aerialshots.media"]
    assert sent["body"]["subject"] == "New shoot assigned: 1 Main St"
