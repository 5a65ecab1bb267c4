"""Access policy: grants document, scopes, and per-call permission decisions.

A grants document maps role -> resource -> "<action>:<possession>" -> grant.
A grant is either a list of attribute patterns or an object with
``attributes`` and an optional ``where`` record condition::

    {
        "admin": {"*": {"read:any": ["*"], "create:any": ["*"], ...}},
        "viewer": {
            "segment": {
                "read:any": {"attributes": ["*", "!rules"], "where": {"archived": false}}
            }
        }
    }

Attribute patterns: ``*`` (all fields), ``name`` (that field), ``!name``
(exclude that field; exclusions win). Resource ``*`` applies to every
resource. Decisions are data: one GrantScope per matched grant, interpreted
by ``PermissionDecision.filter`` and ``write_guard``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from flagaccess.domain.exceptions import PolicyConfigurationError
from flagaccess.shared.enums import ActivityType, Possession

WILDCARD = "*"


class Grant(BaseModel):
    """One grant: visible/writable attributes and an optional record condition."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    attributes: tuple[str, ...] = Field(..., min_length=1)
    where: dict[str, Any] = Field(default_factory=dict)

    @field_validator("attributes")
    @classmethod
    def validate_patterns(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for pattern in value:
            name = pattern[1:] if pattern.startswith("!") else pattern
            if not name or (pattern.startswith("!") and name == WILDCARD):
                raise ValueError(f"invalid attribute pattern: {pattern!r}")
        return value


@dataclass(frozen=True)
class FieldScope:
    """Which fields a decision exposes. ``allowed=None`` means every field."""

    allowed: frozenset[str] | None = None
    excluded: frozenset[str] = frozenset()

    def permits(self, name: str) -> bool:
        if name in self.excluded:
            return False
        return self.allowed is None or name in self.allowed

    @classmethod
    def from_patterns(cls, patterns: Sequence[str]) -> FieldScope:
        allowed: set[str] | None = set()
        excluded: set[str] = set()
        for pattern in patterns:
            if pattern.startswith("!"):
                excluded.add(pattern[1:])
            elif pattern == WILDCARD:
                allowed = None
            elif allowed is not None:
                allowed.add(pattern)
        return cls(
            allowed=frozenset(allowed) if allowed is not None else None,
            excluded=frozenset(excluded),
        )

    def union(self, other: FieldScope) -> FieldScope:
        """A field is visible if either scope shows it."""
        if self.allowed is None and other.allowed is None:
            return FieldScope(allowed=None, excluded=self.excluded & other.excluded)
        if self.allowed is None or other.allowed is None:
            wide, narrow = (self, other) if self.allowed is None else (other, self)
            return FieldScope(
                allowed=None,
                excluded=frozenset(n for n in wide.excluded if not narrow.permits(n)),
            )
        return FieldScope(
            allowed=(self.allowed - self.excluded) | (other.allowed - other.excluded)
        )


NO_FIELDS = FieldScope(allowed=frozenset())

Condition = tuple[tuple[str, Any], ...]


@dataclass(frozen=True)
class GrantScope:
    """Fields one grant exposes, on the records its ``where`` condition admits.

    The condition is a tuple of (field, value) pairs that must all be equal
    on the record; an empty condition admits every record.
    """

    fields: FieldScope
    where: Condition = ()

    def admits(self, record: Mapping[str, Any]) -> bool:
        return all(record.get(name) == expected for name, expected in self.where)


def _union(scopes: Iterable[GrantScope]) -> FieldScope | None:
    merged: FieldScope | None = None
    for scope in scopes:
        merged = scope.fields if merged is None else merged.union(scope.fields)
    return merged


def project(record: Mapping[str, Any], fields: FieldScope) -> dict[str, Any]:
    """Copy of record restricted to the fields the scope permits."""
    return {k: v for k, v in record.items() if fields.permits(k)}


@dataclass(frozen=True)
class PermissionDecision:
    """Outcome of authorization for one (actor, action, resource).

    Holds one GrantScope per matched grant. A record is visible when any
    scope admits it, and then only with the fields of the scopes that do:
    a field granted under one condition never leaks onto a record that
    only another grant admits.
    """

    granted: bool
    action: ActivityType
    resource: str
    scopes: tuple[GrantScope, ...] = ()

    @property
    def record_dependent(self) -> bool:
        """True when some grant carries a ``where`` condition."""
        return any(scope.where for scope in self.scopes)

    def fields_for(self, record: Mapping[str, Any]) -> FieldScope | None:
        """Union of the fields of every scope admitting record; None if none does."""
        return _union(s for s in self.scopes if s.admits(record))

    @property
    def fields(self) -> FieldScope:
        """Every field any grant exposes, ignoring conditions."""
        return _union(self.scopes) or NO_FIELDS

    def filter(self, value: Any) -> Any:
        """Filter a single record (mapping) or a collection of records.

        A single record no scope admits yields None; collections drop such
        records. Never mutates its input.
        """
        if value is None:
            return None
        if isinstance(value, Mapping):
            fields = self.fields_for(value)
            return project(value, fields) if fields is not None else None
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            visible = []
            for item in value:
                fields = self.fields_for(item)
                if fields is not None:
                    visible.append(project(item, fields))
            return visible
        raise TypeError(
            f"Cannot filter {type(value).__name__}; expected a mapping or a sequence of mappings"
        )

    def write_guard(self, record: Mapping[str, Any] | None = None) -> tuple[dict[str, Any], ...]:
        """Conditions a conditional write must match, any one of them.

        Built from the scopes admitting record (all scopes when record is
        None). Empty when one of those scopes is unconditional.
        """
        scopes = [s for s in self.scopes if record is None or s.admits(record)]
        if any(not s.where for s in scopes):
            return ()
        return tuple(dict(s.where) for s in scopes)


def denied(action: ActivityType, resource: str) -> PermissionDecision:
    return PermissionDecision(granted=False, action=action, resource=resource)


class AccessPolicy:
    """Validated grants document. Evaluates roles into PermissionDecisions."""

    def __init__(self, grants: Mapping[str, Any]) -> None:
        self._grants = self._parse(grants)
        self._resources = {
            resource for by_resource in self._grants.values() for resource in by_resource
        }

    @property
    def resources(self) -> frozenset[str]:
        """Resources declared anywhere in the policy (may include ``*``)."""
        return frozenset(self._resources)

    @staticmethod
    def _parse(
        grants: Mapping[str, Any],
    ) -> dict[str, dict[str, dict[tuple[ActivityType, Possession], Grant]]]:
        if not isinstance(grants, Mapping) or not grants:
            raise PolicyConfigurationError("Access policy must be a non-empty mapping of roles")
        parsed: dict[str, dict[str, dict[tuple[ActivityType, Possession], Grant]]] = {}
        for role, by_resource in grants.items():
            if not isinstance(by_resource, Mapping):
                raise PolicyConfigurationError(
                    f"Grants for role {role!r} must be a mapping of resources",
                    {"role": role},
                )
            parsed[role] = {}
            for resource, by_action in by_resource.items():
                if not isinstance(by_action, Mapping):
                    raise PolicyConfigurationError(
                        f"Grants for {role!r} on {resource!r} must be a mapping of actions",
                        {"role": role, "resource": resource},
                    )
                parsed[role][resource] = {
                    _parse_action_key(role, resource, key): _parse_grant(
                        role, resource, key, raw
                    )
                    for key, raw in by_action.items()
                }
        return parsed

    def evaluate(
        self,
        roles: Sequence[str],
        is_owner_or_member: bool,
        action: ActivityType,
        resource: str,
    ) -> PermissionDecision:
        """Union the matching grants of every role into one decision.

        Raises:
            PolicyConfigurationError: resource is not declared in the policy.
        """
        if resource not in self._resources and WILDCARD not in self._resources:
            raise PolicyConfigurationError(
                f"No access policy declared for resource {resource!r}",
                {"resource": resource},
            )
        possessions = [Possession.ANY]
        if is_owner_or_member:
            possessions.append(Possession.OWN)

        matched: list[Grant] = []
        for role in roles:
            by_resource = self._grants.get(role)
            if not by_resource:
                continue
            for scope in (resource, WILDCARD):
                by_action = by_resource.get(scope, {})
                for possession in possessions:
                    grant = by_action.get((action, possession))
                    if grant is not None:
                        matched.append(grant)
        if not matched:
            return denied(action, resource)

        return PermissionDecision(
            granted=True,
            action=action,
            resource=resource,
            scopes=tuple(
                GrantScope(
                    fields=FieldScope.from_patterns(grant.attributes),
                    where=tuple(sorted(grant.where.items())),
                )
                for grant in matched
            ),
        )


def _parse_action_key(role: str, resource: str, key: str) -> tuple[ActivityType, Possession]:
    action, _, possession = key.partition(":")
    try:
        return ActivityType(action), Possession(possession or Possession.ANY.value)
    except ValueError as e:
        raise PolicyConfigurationError(
            f"Invalid action {key!r} for {role!r} on {resource!r}; "
            f"expected '<{'|'.join(ActivityType.values())}>:<{'|'.join(Possession.values())}>'",
            {"role": role, "resource": resource, "action": key},
        ) from e


def _parse_grant(role: str, resource: str, key: str, raw: Any) -> Grant:
    if isinstance(raw, (list, tuple)):
        raw = {"attributes": raw}
    try:
        return Grant.model_validate(raw)
    except ValidationError as e:
        raise PolicyConfigurationError(
            f"Invalid grant {key!r} for {role!r} on {resource!r}",
            {"role": role, "resource": resource, "action": key, "errors": e.errors()},
        ) from e
