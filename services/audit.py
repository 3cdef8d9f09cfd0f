# services/audit.py
"""
Job audit trail (job_events) and operational events (events).

Audit rows are written inside a SAVEPOINT: if the insert fails the savepoint is
rolled back and a warning is logged, and the surrounding mutation still commits.
"""
from __future__ import annotations

import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from models.event import Event
from models.job_event import JobEvent

logger = logging.getLogger(__name__)

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


async def record_job_event(
    db: AsyncSession,
    listing_id: uuid.UUID,
    event_type: str,
    old_value: dict | None = None,
    new_value: dict | None = None,
    actor_id: uuid.UUID | None = None,
    actor_type: str = "staff",
) -> bool:
    return await record_job_events(
        db,
        [
            JobEvent(
                listing_id=listing_id,
                event_type=event_type,
                old_value=old_value,
                new_value=new_value,
                actor_id=actor_id,
                actor_type=actor_type,
            )
        ],
    )


async def record_job_events(db: AsyncSession, events: list[JobEvent]) -> bool:
    """Append audit rows. Returns False (and logs) when they could not be written."""
    if not events:
        return True
    try:
        async with db.begin_nested():
            db.add_all(events)
    except SQLAlchemyError as exc:
        logger.warning(
            "Audit write failed for %d event(s) [%s]: %s",
            len(events),
            events[0].event_type,
            exc,
        )
        return False
    return True


async def log_event(
    db: AsyncSession,
    event_type: str,
    level: str = "info",
    source: str | None = None,
    message: str | None = None,
    metadata: dict | None = None,
    actor_id: uuid.UUID | None = None,
) -> Event:
    """Operational event (settlements, retries, worker failures) for the events table."""
    event = Event(
        event_type=event_type,
        level=level,
        source=source,
        actor_id=actor_id,
        message=message,
        metadata_=metadata,
    )
    db.add(event)
    await db.flush()
    logger.log(_LEVELS.get(level, logging.INFO), "%s event: %s %s", event_type, message or "", metadata or {})
    return event
