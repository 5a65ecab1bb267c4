"""Activity log ORM model. Append-only record of emitted activity events."""

from datetime import datetime
from typing import Any

from sqlalchemy import Connection, DateTime, Integer, String, event
from sqlalchemy.orm import Mapped, Mapper, mapped_column

from flagaccess.infrastructure.persistence.database import Base
from flagaccess.infrastructure.persistence.models.mixins import CuidMixin, JsonDocument


class ActivityLog(CuidMixin, Base):
    """Activity log entry. Who did what to which record, when, and how long it took.

    ``total`` is the unfiltered record count of list reads, null otherwise."""

    __tablename__ = "activity_log"

    actor_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    actor_type: Mapped[str] = mapped_column(String, nullable=False)
    action: Mapped[str] = mapped_column(String, nullable=False)
    resource: Mapped[str] = mapped_column(String, nullable=False, index=True)
    object_id: Mapped[str | None] = mapped_column(String, nullable=True)
    object_data: Mapped[dict[str, Any] | None] = mapped_column(JsonDocument, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    took: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    total: Mapped[int | None] = mapped_column(Integer, nullable=True)


@event.listens_for(ActivityLog, "before_update")
def _prevent_activity_log_updates(
    _mapper: Mapper[Any], _connection: Connection, _target: ActivityLog
) -> None:
    """Activity log entries are append-only; updates are forbidden."""
    raise ValueError("Activity log entries are immutable and cannot be updated.")


@event.listens_for(ActivityLog, "before_delete")
def _prevent_activity_log_deletes(
    _mapper: Mapper[Any], _connection: Connection, _target: ActivityLog
) -> None:
    """Activity log entries cannot be deleted."""
    raise ValueError("Activity log entries cannot be deleted.")
