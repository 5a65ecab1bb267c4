"""Activity log persistence: ActivityLogWriter subscriber and append-only guards."""

import logging

import pytest
from sqlalchemy import select

from flagaccess.application.dtos.activity import ActivityEvent, ActivityObject, Actor
from flagaccess.infrastructure.persistence.models import ActivityLog
from flagaccess.infrastructure.persistence.repositories.activity_log_repo import (
    ActivityLogRepository,
)
from flagaccess.infrastructure.services.activity_subscribers import (
    ActivityLogWriter,
    log_activity,
)
from flagaccess.shared.enums import ActivityType

pytestmark = pytest.mark.requires_db


def _delete_event(fixed_time) -> ActivityEvent:
    return ActivityEvent(
        actor=Actor(id="user-admin", roles=("admin",)),
        action=ActivityType.DELETE,
        resource="segment",
        object=ActivityObject(id="s1", type="segment"),
        timestamp=fixed_time,
        took=4,
        type=ActivityType.DELETE,
    )


async def test_writer_persists_event_in_its_own_transaction(session_factory, fixed_time) -> None:
    await ActivityLogWriter(session_factory)(_delete_event(fixed_time))

    async with session_factory() as session:
        rows = await ActivityLogRepository(session).list_for_resource("segment")
    assert len(rows) == 1
    row = rows[0]
    assert row.actor_id == "user-admin"
    assert row.actor_type == "Person"
    assert row.action == "delete"
    assert row.object_id == "s1"
    assert row.object_data == {"id": "s1", "type": "segment"}
    assert row.took == 4
    assert row.type == "delete"
    assert row.total is None


async def test_list_for_resource_newest_first(db_session, fixed_time) -> None:
    repo = ActivityLogRepository(db_session)
    older = _delete_event(fixed_time)
    newer = ActivityEvent(
        actor=older.actor,
        action=ActivityType.READ,
        resource="segment",
        object=None,
        timestamp=fixed_time.replace(hour=13),
        took=0,
        type=ActivityType.READ,
        total=3,
    )
    await repo.append(older)
    await repo.append(newer)
    await repo.append(
        ActivityEvent(
            actor=older.actor,
            action=ActivityType.READ,
            resource="flag",
            object=None,
            timestamp=fixed_time,
            took=0,
            type=ActivityType.READ,
        )
    )

    rows = await repo.list_for_resource("segment")
    assert [r.action for r in rows] == ["read", "delete"]
    assert rows[0].object_id is None
    assert (rows[0].type, rows[0].total) == ("read", 3)
    assert await repo.list_for_resource("segment", limit=1) == rows[:1]


async def test_activity_log_rows_are_append_only(db_session, fixed_time) -> None:
    row = await ActivityLogRepository(db_session).append(_delete_event(fixed_time))

    row.took = 99
    with pytest.raises(ValueError, match="immutable"):
        await db_session.flush()
    await db_session.rollback()

    stored = (await db_session.execute(select(ActivityLog))).scalars().all()
    assert stored == []


async def test_log_activity_writes_json_line(caplog, fixed_time) -> None:
    with caplog.at_level(logging.INFO, logger="flagaccess.activity"):
        log_activity(_delete_event(fixed_time))
    (record,) = [r for r in caplog.records if r.name == "flagaccess.activity"]
    assert record.levelno == logging.INFO
    assert '"action": "delete"' in record.getMessage()
    assert '"object": {"id": "s1", "type": "segment"}' in record.getMessage()
