"""Application services: access policy evaluation."""

from flagaccess.application.services.access_policy import (
    AccessPolicy,
    FieldScope,
    GrantScope,
    PermissionDecision,
)

__all__ = ["AccessPolicy", "FieldScope", "GrantScope", "PermissionDecision"]
