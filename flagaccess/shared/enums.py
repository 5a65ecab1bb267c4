"""Shared enumerations for flagaccess.

Cross-cutting enums used by application and infrastructure (activity
types for authorization and audit, actor type, grant possession).
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class ActorType(_ValuesMixin, str, Enum):
    """Actor type for activity tracking (who performed the action)."""

    PERSON = "Person"


class ActivityType(_ValuesMixin, str, Enum):
    """Action performed on a resource; doubles as the audit event type."""

    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class Possession(_ValuesMixin, str, Enum):
    """Scope of a grant: any record, or only records the actor owns or belongs to."""

    ANY = "any"
    OWN = "own"
