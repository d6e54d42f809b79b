"""Transactional outbox for mutation side effects.

A primary write records an ``OutboxEvent`` in its own transaction. Once that
transaction commits, the event is dispatched inline: it is claimed with a
conditional UPDATE (so it runs at most once) and its handler runs in a
separate session. Events that were committed but never claimed, e.g. because
the process died between commit and dispatch, are picked up by the arq
worker through ``dispatch_pending_events``.

Nothing in this module raises to the caller: side-effect failures are logged
and recorded on the event row.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.database import session_scope
from wordflow.db.models import OutboxEvent
from wordflow.events.handlers import HANDLERS, HandlerContext
from wordflow.events.types import (  # noqa: F401
    ARTICLE_PUBLISHED,
    CLAP_CREATED,
    CLAP_REMOVED,
    COMMENT_CREATED,
    FOLLOW_CREATED,
    READ_RECORDED,
)
from wordflow.redis_client import get_redis_or_none

logger = structlog.get_logger()

EVENT_TYPES = frozenset(HANDLERS)


async def record_event(db: AsyncSession, event_type: str, payload: dict[str, Any]) -> OutboxEvent:
    """Add an event to the caller's transaction. It is dispatched after commit."""
    if event_type not in EVENT_TYPES:
        raise ValueError(f"Unknown event type: {event_type}")
    event = OutboxEvent(
        event_type=event_type,
        payload=payload,
        created_at=datetime.now(timezone.utc),
    )
    db.add(event)
    await db.flush()
    return event


async def commit_and_dispatch(db: AsyncSession, events: Iterable[OutboxEvent | None]) -> None:
    """Commit the primary write, then run the side effects of its events."""
    event_ids = [e.id for e in events if e is not None]
    await db.commit()
    await dispatch_events(event_ids)


async def dispatch_events(event_ids: Iterable[int]) -> None:
    """Dispatch events sequentially; one failing event never blocks the next."""
    for event_id in event_ids:
        await dispatch_event(event_id)


async def _claim(db: AsyncSession, event_id: int) -> bool:
    result = await db.execute(
        update(OutboxEvent)
        .where(OutboxEvent.id == event_id, OutboxEvent.dispatched_at.is_(None))
        .values(dispatched_at=datetime.now(timezone.utc), attempts=OutboxEvent.attempts + 1)
    )
    await db.commit()
    return result.rowcount == 1


async def dispatch_event(event_id: int) -> bool:
    """Claim and run one event. Returns True if every side effect succeeded."""
    try:
        async with session_scope() as db:
            if not await _claim(db, event_id):
                return False

            result = await db.execute(select(OutboxEvent).where(OutboxEvent.id == event_id))
            event = result.scalar_one()
            event_type = event.event_type
            payload = dict(event.payload or {})

            ctx = HandlerContext(db, redis=get_redis_or_none(), event_id=event_id)
            handler = HANDLERS[event_type]
            try:
                await handler(ctx, payload)
            except Exception as exc:
                await db.rollback()
                logger.warning(
                    "side_effect_handler_failed",
                    event_id=event_id,
                    event_type=event_type,
                    error=str(exc),
                    exc_info=True,
                )
                ctx.failures.append(f"handler: {exc}")

            if ctx.failures:
                await db.execute(
                    update(OutboxEvent)
                    .where(OutboxEvent.id == event_id)
                    .values(last_error="; ".join(ctx.failures)[:2000])
                )
                await db.commit()
                return False
            return True
    except Exception:
        logger.warning("side_effect_dispatch_failed", event_id=event_id, exc_info=True)
        return False


async def dispatch_pending_events(limit: int = 100, grace_seconds: int = 30) -> int:
    """Dispatch committed events nobody claimed. Returns the number dispatched.

    ``grace_seconds`` leaves fresh events to the request that recorded them.
    """
    cutoff = datetime.now(timezone.utc) - timedelta(seconds=grace_seconds)
    async with session_scope() as db:
        result = await db.execute(
            select(OutboxEvent.id)
            .where(OutboxEvent.dispatched_at.is_(None), OutboxEvent.created_at <= cutoff)
            .order_by(OutboxEvent.id)
            .limit(limit)
        )
        pending = list(result.scalars())

    for event_id in pending:
        await dispatch_event(event_id)
    if pending:
        logger.info("outbox_pending_dispatched", count=len(pending))
    return len(pending)
