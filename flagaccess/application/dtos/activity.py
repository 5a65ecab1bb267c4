"""Actors and activity events.

An ActivityEvent is produced once per completed operation and is never
mutated after emission; subscribers receive the same frozen instance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from flagaccess.shared.enums import ActivityType, ActorType

_SENSITIVE_KEYS = frozenset({
    "password", "hashed_password", "secret", "api_key", "token",
    "credentials", "client_secret", "refresh_token", "access_token",
})


@dataclass(frozen=True)
class Actor:
    """Identity performing an operation (supplied by the session layer, trusted as-is)."""

    id: str
    type: ActorType = ActorType.PERSON
    roles: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Actor id is required")
        # Accept any iterable of role names but store an immutable tuple.
        object.__setattr__(self, "roles", tuple(self.roles))


@dataclass(frozen=True)
class ActivityObject:
    """Reference to the record an activity touched, optionally with its data."""

    id: str | None
    type: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ActivityEvent:
    """Immutable record of one completed operation.

    Attributes:
        actor: Who performed the operation.
        action: What was done.
        resource: Resource name (e.g. 'segment').
        object: Record reference, or None for collection reads.
        timestamp: Completion time (UTC).
        took: Milliseconds spent authorizing and executing.
        type: Event type; equal to ``action`` for CRUD activity.
        total: Unfiltered record count, for collection reads only.
    """

    actor: Actor
    action: ActivityType
    resource: str
    object: ActivityObject | None
    timestamp: datetime
    took: int
    type: ActivityType
    total: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation (datetimes ISO-formatted, secrets redacted)."""
        obj: dict[str, Any] | None = None
        if self.object is not None:
            obj = {
                **_sanitize(self.object.data),
                "id": self.object.id,
                "type": self.object.type,
            }
        return {
            "actor": {"id": self.actor.id, "type": self.actor.type.value},
            "action": self.action.value,
            "resource": self.resource,
            "object": obj,
            "timestamp": self.timestamp.isoformat(),
            "took": self.took,
            "type": self.type.value,
            "total": self.total,
        }


def _sanitize(data: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in data.items():
        if key.lower() in _SENSITIVE_KEYS:
            out[key] = "[REDACTED]"
        elif isinstance(value, datetime):
            out[key] = value.isoformat()
        elif isinstance(value, dict):
            out[key] = _sanitize(value)
        elif isinstance(value, (list, tuple)):
            out[key] = [_sanitize(v) if isinstance(v, dict) else v for v in value]
        else:
            out[key] = value
    return out
