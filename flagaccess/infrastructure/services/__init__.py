"""Service adapters: permission resolution and activity subscribers."""

from flagaccess.infrastructure.services.activity_subscribers import (
    ActivityLogWriter,
    log_activity,
)
from flagaccess.infrastructure.services.permission_resolver import PermissionResolver

__all__ = ["ActivityLogWriter", "PermissionResolver", "log_activity"]
