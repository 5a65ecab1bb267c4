"""Repositories: record stores and the activity log."""

from flagaccess.infrastructure.persistence.repositories.activity_log_repo import (
    ActivityLogRepository,
)
from flagaccess.infrastructure.persistence.repositories.base import BaseRepository
from flagaccess.infrastructure.persistence.repositories.segment_repo import (
    SegmentRepository,
)

__all__ = ["ActivityLogRepository", "BaseRepository", "SegmentRepository"]
