"""Process lifespan: startup and shutdown wiring.

Single place for all startup/shutdown logic. Builds the database engine,
the permission resolver and the audit emitter once, and hands them out
through an AccessContainer. No business logic here.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flagaccess.application.use_cases.segments import SegmentService
from flagaccess.core.config import Settings, get_settings
from flagaccess.infrastructure.messaging.audit_emitter import (
    AuditEmitter,
    AuditSubscription,
)
from flagaccess.infrastructure.persistence import database
from flagaccess.infrastructure.persistence.repositories.segment_repo import (
    SegmentRepository,
)
from flagaccess.infrastructure.services.activity_subscribers import (
    ActivityLogWriter,
    log_activity,
)
from flagaccess.infrastructure.services.permission_resolver import PermissionResolver
from flagaccess.shared.telemetry.logging import get_logger, setup_logging

logger = get_logger(__name__)


@dataclass(frozen=True)
class AccessContainer:
    """Process-wide collaborators shared by every request."""

    settings: Settings
    session_factory: async_sessionmaker[AsyncSession]
    resolver: PermissionResolver
    emitter: AuditEmitter

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Session in one transaction: commit on success, roll back on exception."""
        async with self.session_factory() as session:
            async with session.begin():
                yield session

    def segments(self, db: AsyncSession) -> SegmentService:
        """SegmentService bound to a request-scoped session."""
        return SegmentService(
            SegmentRepository(db),
            self.resolver,
            self.emitter,
            tracing=self.settings.telemetry_enabled,
        )


def build_subscriptions(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    extra: Sequence[AuditSubscription] = (),
) -> list[AuditSubscription]:
    """Default subscriptions (activity log line, optional DB writer) plus extra."""
    subscriptions = [AuditSubscription(log_activity, name="log_activity")]
    if settings.audit_persist_enabled:
        subscriptions.append(
            AuditSubscription(ActivityLogWriter(session_factory), name="activity_log")
        )
    subscriptions.extend(extra)
    return subscriptions


@asynccontextmanager
async def create_lifespan(
    settings: Settings | None = None,
    *,
    grants: Mapping[str, Any] | None = None,
    subscriptions: Sequence[AuditSubscription] = (),
    create_schema: bool = False,
) -> AsyncIterator[AccessContainer]:
    """Run startup, yield the container, then run shutdown.

    Startup order: logging, engine, (schema), policy, emitter.
    Shutdown order: emitter drain/stop, engine dispose.
    ``grants`` overrides settings.access_policy_path; a missing or invalid
    policy raises PolicyConfigurationError before anything is yielded.
    """
    settings = settings or get_settings()

    # ---- Startup ----
    setup_logging(settings)
    session_factory = database.init_engine(settings)
    try:
        if create_schema:
            await database.create_schema()
        resolver = (
            PermissionResolver.from_mapping(grants)
            if grants is not None
            else PermissionResolver.from_settings(settings)
        )
    except Exception:
        await database.dispose_engine()
        raise
    emitter = AuditEmitter(
        build_subscriptions(settings, session_factory, subscriptions),
        maxsize=settings.audit_queue_maxsize,
    )
    await emitter.start()
    logger.info("%s %s started", settings.app_name, settings.app_version)

    try:
        yield AccessContainer(
            settings=settings,
            session_factory=session_factory,
            resolver=resolver,
            emitter=emitter,
        )
    finally:
        # ---- Shutdown ----
        await emitter.stop()
        await database.dispose_engine()
        logger.info("%s stopped", settings.app_name)
