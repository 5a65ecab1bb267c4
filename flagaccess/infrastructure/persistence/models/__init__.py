"""Persistence models: ORM entities and mixins."""

from flagaccess.infrastructure.persistence.models.activity_log import ActivityLog
from flagaccess.infrastructure.persistence.models.flag import Flag, flag_segment
from flagaccess.infrastructure.persistence.models.mixins import (
    ArchivableMixin,
    CuidMixin,
    TimestampMixin,
)
from flagaccess.infrastructure.persistence.models.segment import Segment

__all__ = [
    "ActivityLog",
    "Flag",
    "Segment",
    "flag_segment",
    "ArchivableMixin",
    "CuidMixin",
    "TimestampMixin",
]
