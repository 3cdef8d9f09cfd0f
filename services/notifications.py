# services/notifications.py
"""
Staff notifications.

The API only enqueues SEND_NOTIFICATION outbox rows; the worker renders and
delivers them through the Resend HTTP API.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.config import get_settings
from jobs.queue import enqueue
from models.job import SEND_NOTIFICATION, Job

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"

SUBJECTS = {
    "photographer_assigned": "New shoot assigned: {listing_address}",
    "editor_assigned": "New editing job: {listing_address}",
    "status_changed": "{listing_address} is now {status_label}",
    "job_delivered": "Delivered: {listing_address}",
}


class NotificationError(Exception):
    pass


@dataclass
class Notification:
    notification_type: str
    recipient_name: str
    recipient_email: str
    data: dict

    @property
    def subject(self) -> str:
        template = SUBJECTS.get(self.notification_type, "Ops update")
        return template.format_map(_Defaults(self.data))

    def render_text(self) -> str:
        lines = [f"Hi {self.recipient_name},", "", self.subject, ""]
        if self.data.get("scheduled_at"):
            lines.append(f"Scheduled: {self.data['scheduled_at']}")
        if self.data.get("assigned_by"):
            lines.append(f"Assigned by: {self.data['assigned_by']}")
        if self.data.get("listing_id"):
            base = get_settings().portal_base_url.rstrip("/")
            lines.append(f"Open job: {base}/admin/ops/jobs/{self.data['listing_id']}")
        return "\n".join(lines)


class _Defaults(dict):
    def __missing__(self, key: str) -> str:
        return ""


def status_label(status: str) -> str:
    return status.replace("_", " ").title()


async def queue_notification(
    db: AsyncSession,
    notification_type: str,
    recipient_name: str,
    recipient_email: str | None,
    data: dict,
) -> Job | None:
    """Schedule a notification in the outbox. Returns None when there is nobody to notify."""
    if not recipient_email:
        logger.info("Skipping %s notification: recipient has no email", notification_type)
        return None
    return await enqueue(
        db,
        SEND_NOTIFICATION,
        {
            "notification_type": notification_type,
            "recipient": {"name": recipient_name, "email": recipient_email},
            "data": data,
        },
    )


def notification_from_payload(payload: dict) -> Notification:
    recipient = payload.get("recipient") or {}
    if not recipient.get("email"):
        raise NotificationError("Notification payload has no recipient email")
    return Notification(
        notification_type=payload.get("notification_type", "status_changed"),
        recipient_name=recipient.get("name") or "there",
        recipient_email=recipient["email"],
        data=payload.get("data") or {},
    )


async def send_email(notification: Notification) -> str:
    """Deliver one notification by email. Returns the provider message id."""
    settings = get_settings()
    if not settings.email_configured:
        raise NotificationError("Email is not configured (RESEND_API_KEY missing)")

    body = {
        "from": settings.notification_from_email,
        "to": [notification.recipient_email],
        "subject": notification.subject,
        "text": notification.render_text(),
    }
    async with httpx.AsyncClient(timeout=10.0) as client:
        resp = await client.post(
            RESEND_URL,
            json=body,
            headers={"Authorization": f"Bearer {settings.resend_api_key}"},
        )
        resp.raise_for_status()
        message_id = resp.json().get("id", "")

    logger.info(
        "Sent %s notification to %s (%s)",
        notification.notification_type,
        notification.recipient_email,
        message_id,
    )
    return message_id
