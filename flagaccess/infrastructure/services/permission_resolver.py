"""Resolves actor permissions from the grants policy (implements IPermissionResolver)."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from flagaccess.application.dtos.activity import Actor
from flagaccess.application.services.access_policy import AccessPolicy, PermissionDecision
from flagaccess.core.config import Settings
from flagaccess.domain.exceptions import PolicyConfigurationError
from flagaccess.shared.enums import ActivityType
from flagaccess.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class PermissionResolver:
    """Builds a fresh PermissionDecision per call from the actor's roles."""

    def __init__(self, policy: AccessPolicy) -> None:
        self.policy = policy

    @classmethod
    def from_mapping(cls, grants: Mapping[str, Any]) -> PermissionResolver:
        return cls(AccessPolicy(grants))

    @classmethod
    def from_file(cls, path: str | Path) -> PermissionResolver:
        """Load a JSON grants document. Unreadable or invalid files are fatal."""
        try:
            grants = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise PolicyConfigurationError(
                f"Cannot load access policy from {str(path)!r}: {e}",
                {"path": str(path)},
            ) from e
        logger.info("Loaded access policy from %s", path)
        return cls.from_mapping(grants)

    @classmethod
    def from_settings(cls, settings: Settings) -> PermissionResolver:
        if not settings.access_policy_path:
            raise PolicyConfigurationError(
                "No access policy configured: set FLAGACCESS_ACCESS_POLICY_PATH "
                "or pass a grants mapping explicitly"
            )
        return cls.from_file(settings.access_policy_path)

    async def resolve(
        self,
        actor: Actor,
        is_owner_or_member: bool,
        action: ActivityType,
        resource: str,
    ) -> PermissionDecision:
        """Return the decision for actor; raises PolicyConfigurationError if policy cannot decide."""
        decision = self.policy.evaluate(actor.roles, is_owner_or_member, action, resource)
        if not decision.granted:
            logger.debug(
                "Denied %s on %s for actor %s (roles: %s)",
                action.value,
                resource,
                actor.id,
                ", ".join(actor.roles) or "none",
            )
        return decision
