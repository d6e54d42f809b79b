"""Outbox arq worker: dispatches side-effect events the API never claimed.

Inline dispatch after commit handles almost every event. This worker picks
up the rest, e.g. when the API process died between commit and dispatch.
"""

from __future__ import annotations

import logging

from arq import cron
from arq.connections import RedisSettings

from wordflow.config import get_settings
from wordflow.database import close_db, init_db
from wordflow.events.outbox import dispatch_event, dispatch_pending_events
from wordflow.redis_client import close_redis, init_redis

logger = logging.getLogger(__name__)


async def outbox_startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Initialize DB + Redis on worker startup."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)
    logger.info("Outbox worker started")


async def outbox_shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    """Clean up on worker shutdown."""
    await close_redis()
    await close_db()
    logger.info("Outbox worker shut down")


async def retry_pending_events(ctx: dict) -> int:  # type: ignore[type-arg]
    """Periodic task: dispatch committed events older than the grace period."""
    settings = get_settings()
    return await dispatch_pending_events(
        limit=settings.outbox_retry_batch_size,
        grace_seconds=settings.outbox_retry_grace_seconds,
    )


async def dispatch_one(ctx: dict, event_id: int) -> bool:  # type: ignore[type-arg]
    """On-demand task: dispatch a single event by id."""
    return await dispatch_event(event_id)


class WorkerSettings:
    """arq worker settings for the outbox dispatcher."""

    functions = [retry_pending_events, dispatch_one]
    cron_jobs = [
        cron(retry_pending_events, second={0}, run_at_startup=True),
    ]
    on_startup = outbox_startup
    on_shutdown = outbox_shutdown
    redis_settings = RedisSettings.from_dsn(get_settings().redis_url)
    max_jobs = 4
