"""Activity subscribers registered on the AuditEmitter at startup."""

from __future__ import annotations

import json

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flagaccess.application.dtos.activity import ActivityEvent
from flagaccess.infrastructure.persistence.repositories.activity_log_repo import (
    ActivityLogRepository,
)
from flagaccess.shared.telemetry.logging import get_logger

logger = get_logger("flagaccess.activity")


def log_activity(event: ActivityEvent) -> None:
    """Write one structured INFO line per activity event."""
    logger.info("activity %s", json.dumps(event.to_dict(), default=str, sort_keys=True))


class ActivityLogWriter:
    """Persists activity events to activity_log, one short transaction per event.

    Runs on the emitter's dispatcher, outside the request's session.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def __call__(self, event: ActivityEvent) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await ActivityLogRepository(session).append(event)
