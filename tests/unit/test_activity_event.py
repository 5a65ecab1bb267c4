"""Actor and ActivityEvent tests (construction, serialization, redaction)."""

import dataclasses

import pytest

from flagaccess.application.dtos.activity import ActivityEvent, ActivityObject, Actor
from flagaccess.shared.enums import ActivityType, ActorType


def test_actor_requires_id() -> None:
    with pytest.raises(ValueError, match="Actor id is required"):
        Actor(id="")


def test_actor_defaults_and_role_coercion() -> None:
    actor = Actor(id="user-1", roles=["admin", "viewer"])
    assert actor.type == ActorType.PERSON
    assert actor.roles == ("admin", "viewer")


def test_event_to_dict_shape(fixed_time) -> None:
    event = ActivityEvent(
        actor=Actor(id="user-1"),
        action=ActivityType.DELETE,
        resource="segment",
        object=ActivityObject(id="s1", type="segment"),
        timestamp=fixed_time,
        took=12,
        type=ActivityType.DELETE,
    )
    assert event.to_dict() == {
        "actor": {"id": "user-1", "type": "Person"},
        "action": "delete",
        "resource": "segment",
        "object": {"id": "s1", "type": "segment"},
        "timestamp": "2025-01-15T12:00:00+00:00",
        "took": 12,
        "type": "delete",
        "total": None,
    }


def test_collection_read_has_no_object_and_a_total(fixed_time) -> None:
    event = ActivityEvent(
        actor=Actor(id="user-1"),
        action=ActivityType.READ,
        resource="segment",
        object=None,
        timestamp=fixed_time,
        took=0,
        type=ActivityType.READ,
        total=3,
    )
    payload = event.to_dict()
    assert payload["object"] is None
    assert payload["total"] == 3


def test_object_data_cannot_override_id_or_type(fixed_time) -> None:
    """Record data is merged under the reference, never over it."""
    event = ActivityEvent(
        actor=Actor(id="user-1"),
        action=ActivityType.CREATE,
        resource="segment",
        object=ActivityObject(
            id="s1",
            type="segment",
            data={"id": "other", "type": "flag", "name": "beta-users", "created_at": fixed_time},
        ),
        timestamp=fixed_time,
        took=1,
        type=ActivityType.CREATE,
    )
    obj = event.to_dict()["object"]
    assert obj["id"] == "s1"
    assert obj["type"] == "segment"
    assert obj["name"] == "beta-users"
    assert obj["created_at"] == "2025-01-15T12:00:00+00:00"


def test_sensitive_keys_are_redacted(fixed_time) -> None:
    event = ActivityEvent(
        actor=Actor(id="user-1"),
        action=ActivityType.UPDATE,
        resource="segment",
        object=ActivityObject(
            id="s1",
            type="segment",
            data={"api_key": "abc", "nested": {"Token": "xyz"}, "rules": [{"secret": "s"}]},
        ),
        timestamp=fixed_time,
        took=1,
        type=ActivityType.UPDATE,
    )
    obj = event.to_dict()["object"]
    assert obj["api_key"] == "[REDACTED]"
    assert obj["nested"] == {"Token": "[REDACTED]"}
    assert obj["rules"] == [{"secret": "[REDACTED]"}]


def test_event_is_immutable(fixed_time) -> None:
    event = ActivityEvent(
        actor=Actor(id="user-1"),
        action=ActivityType.READ,
        resource="segment",
        object=None,
        timestamp=fixed_time,
        took=0,
        type=ActivityType.READ,
    )
    with pytest.raises(dataclasses.FrozenInstanceError):
        event.took = 5  # type: ignore[misc]
