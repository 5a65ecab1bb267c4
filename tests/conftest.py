"""Pytest configuration and fixtures for flagaccess.

DB-dependent fixtures run against in-memory SQLite (aiosqlite) built with
the same engine factory the lifespan uses. Each test gets a fresh schema.
"""

from datetime import UTC, datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from flagaccess.application.dtos.activity import ActivityEvent, Actor
from flagaccess.core.config import Settings
from flagaccess.infrastructure.messaging.audit_emitter import (
    AuditEmitter,
    AuditSubscription,
)
from flagaccess.infrastructure.persistence import models  # noqa: F401
from flagaccess.infrastructure.persistence.database import (
    Base,
    build_engine,
    build_session_factory,
)
from flagaccess.infrastructure.persistence.models import Flag, Segment
from flagaccess.infrastructure.services.permission_resolver import PermissionResolver

# admin: everything everywhere. viewer: non-archived segments without rules.
# editor: reads everything, may only rename or redescribe. auditor: no segment grants.
GRANTS = {
    "admin": {
        "*": {
            "read:any": ["*"],
            "create:any": ["*"],
            "update:any": ["*"],
            "delete:any": ["*"],
        }
    },
    "viewer": {
        "segment": {
            "read:any": {"attributes": ["*", "!rules"], "where": {"archived": False}},
        }
    },
    "editor": {
        "segment": {
            "read:any": ["*"],
            "update:any": ["name", "description"],
        }
    },
    "auditor": {"flag": {"read:any": ["*"]}},
}


class RecordingSubscriber:
    """Audit handler that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[ActivityEvent] = []

    def __call__(self, event: ActivityEvent) -> None:
        self.events.append(event)


@pytest.fixture
def settings() -> Settings:
    """Settings for an in-memory SQLite database, ignoring any .env file."""
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite://",
        telemetry_enabled=False,
    )


@pytest.fixture
async def engine(settings: Settings):
    """Engine with all tables created; disposed after the test."""
    eng = build_engine(settings)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def db_session(session_factory) -> AsyncSession:
    """Session for repository/integration tests. Rolls back after test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def seeded_session(db_session: AsyncSession) -> AsyncSession:
    """Session holding two flags and three segments; s3 is archived.

    s1 is linked to both flags, s2 to one, s3 to none.
    """
    checkout = Flag(id="f1", key="new-checkout", name="New checkout")
    banner = Flag(id="f2", key="promo-banner", name="Promo banner")
    db_session.add_all([checkout, banner])
    await db_session.flush()

    rule = {"attribute": "country", "operator": "in", "values": ["UG", "KE"]}
    s1 = Segment(id="s1", name="beta-users", description="Beta program", rules=[rule])
    s2 = Segment(id="s2", name="staff", description=None, rules=[])
    s3 = Segment(id="s3", name="legacy", description="Old cohort", rules=[], archived=True)
    s1.flags = [checkout, banner]
    s2.flags = [banner]
    db_session.add_all([s1, s2, s3])
    await db_session.flush()
    return db_session


@pytest.fixture
def grants() -> dict:
    return GRANTS


@pytest.fixture
def resolver(grants: dict) -> PermissionResolver:
    return PermissionResolver.from_mapping(grants)


@pytest.fixture
def recorder() -> RecordingSubscriber:
    return RecordingSubscriber()


@pytest.fixture
def emitter(recorder: RecordingSubscriber) -> AuditEmitter:
    """Emitter without a running dispatcher; call drain() to deliver inline."""
    return AuditEmitter([AuditSubscription(recorder, name="recorder")])


@pytest.fixture
def admin() -> Actor:
    return Actor(id="user-admin", roles=("admin",))


@pytest.fixture
def viewer() -> Actor:
    return Actor(id="user-viewer", roles=("viewer",))


@pytest.fixture
def editor() -> Actor:
    return Actor(id="user-editor", roles=("editor",))


@pytest.fixture
def auditor() -> Actor:
    return Actor(id="user-auditor", roles=("auditor",))


@pytest.fixture
def fixed_time() -> datetime:
    return datetime(2025, 1, 15, 12, 0, 0, tzinfo=UTC)
