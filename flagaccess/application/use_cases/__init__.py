"""Use cases: permission-filtered, audited resource access."""

from flagaccess.application.use_cases.resource_access import ResourceAccessService
from flagaccess.application.use_cases.segments import SEGMENT_RESOURCE, SegmentService

__all__ = ["ResourceAccessService", "SegmentService", "SEGMENT_RESOURCE"]
