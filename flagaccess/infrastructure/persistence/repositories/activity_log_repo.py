"""Activity log repository. Append-only; no update/delete."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flagaccess.application.dtos.activity import ActivityEvent
from flagaccess.infrastructure.persistence.models.activity_log import ActivityLog


class ActivityLogRepository:
    """Append-only activity log repository."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def append(self, event: ActivityEvent) -> ActivityLog:
        """Append one activity event; return the created row."""
        payload = event.to_dict()
        obj = payload["object"]
        row = ActivityLog(
            actor_id=event.actor.id,
            actor_type=event.actor.type.value,
            action=event.action.value,
            resource=event.resource,
            object_id=obj["id"] if obj else None,
            object_data=obj,
            timestamp=event.timestamp,
            took=event.took,
            type=payload["type"],
            total=payload["total"],
        )
        self.db.add(row)
        await self.db.flush()
        return row

    async def list_for_resource(
        self, resource: str, *, limit: int = 100
    ) -> list[ActivityLog]:
        """Entries for one resource, newest first."""
        result = await self.db.execute(
            select(ActivityLog)
            .where(ActivityLog.resource == resource)
            .order_by(ActivityLog.timestamp.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
