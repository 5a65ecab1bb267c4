"""Application DTOs (no dependency on ORM)."""

from flagaccess.application.dtos.activity import ActivityEvent, ActivityObject, Actor
from flagaccess.application.dtos.search import SearchResult
from flagaccess.application.dtos.segment import FlagRef, SegmentRecord

__all__ = [
    "Actor",
    "ActivityObject",
    "ActivityEvent",
    "SearchResult",
    "FlagRef",
    "SegmentRecord",
]
