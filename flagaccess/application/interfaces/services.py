"""Service interfaces (ports) for the application layer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from flagaccess.shared.enums import ActivityType

if TYPE_CHECKING:
    from flagaccess.application.dtos.activity import ActivityEvent, Actor
    from flagaccess.application.services.access_policy import PermissionDecision


class IPermissionResolver(Protocol):
    """Protocol for deciding whether an actor may perform an action on a resource."""

    async def resolve(
        self,
        actor: Actor,
        is_owner_or_member: bool,
        action: ActivityType,
        resource: str,
    ) -> PermissionDecision:
        """Return a fresh decision. Raises PolicyConfigurationError if policy cannot decide."""


class IAuditEmitter(Protocol):
    """Protocol for publishing activity events without blocking the caller."""

    def emit(self, event_type: ActivityType, event: ActivityEvent) -> None:
        """Queue one event for subscribers; never raises subscriber failures."""
