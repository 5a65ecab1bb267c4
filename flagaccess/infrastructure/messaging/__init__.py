"""In-process messaging: the activity/audit emitter."""

from flagaccess.infrastructure.messaging.audit_emitter import (
    AuditEmitter,
    AuditSubscription,
)

__all__ = ["AuditEmitter", "AuditSubscription"]
