"""AuditEmitter tests: delivery, type filtering, subscriber isolation, queue bounds."""

import asyncio
import logging

from flagaccess.application.dtos.activity import ActivityEvent, ActivityObject, Actor
from flagaccess.infrastructure.messaging.audit_emitter import (
    AuditEmitter,
    AuditSubscription,
)
from flagaccess.shared.enums import ActivityType
from flagaccess.shared.utils.datetime import utc_now


def _event(action: ActivityType = ActivityType.READ, record_id: str | None = "s1") -> ActivityEvent:
    return ActivityEvent(
        actor=Actor(id="user-1", roles=("admin",)),
        action=action,
        resource="segment",
        object=ActivityObject(id=record_id, type="segment") if record_id else None,
        timestamp=utc_now(),
        took=3,
        type=action,
    )


async def test_drain_without_dispatcher_delivers_inline() -> None:
    received: list[ActivityEvent] = []
    emitter = AuditEmitter([AuditSubscription(received.append)])
    event = _event()

    emitter.emit(ActivityType.READ, event)
    assert received == []
    assert emitter.pending() == 1

    await emitter.drain()
    assert received == [event]
    assert emitter.pending() == 0


async def test_failing_subscriber_does_not_block_others(caplog) -> None:
    """A raising handler is logged; later subscribers still get the event."""
    received: list[ActivityEvent] = []

    def broken(_event: ActivityEvent) -> None:
        raise RuntimeError("subscriber exploded")

    emitter = AuditEmitter(
        [
            AuditSubscription(broken, name="broken"),
            AuditSubscription(received.append, name="collector"),
        ]
    )
    with caplog.at_level(logging.ERROR):
        emitter.emit(ActivityType.CREATE, _event(ActivityType.CREATE))
        await emitter.drain()

    assert len(received) == 1
    assert "Audit subscriber broken failed" in caplog.text
    assert "subscriber exploded" in caplog.text
    assert "flagaccess.infrastructure.messaging.audit_emitter" in {r.name for r in caplog.records}


async def test_subscription_event_type_filter() -> None:
    deletes: list[ActivityEvent] = []
    everything: list[ActivityEvent] = []
    emitter = AuditEmitter(
        [
            AuditSubscription.for_types(deletes.append, [ActivityType.DELETE]),
            AuditSubscription(everything.append),
        ]
    )
    emitter.emit(ActivityType.READ, _event(ActivityType.READ))
    emitter.emit(ActivityType.DELETE, _event(ActivityType.DELETE))
    await emitter.drain()

    assert [e.action for e in deletes] == [ActivityType.DELETE]
    assert [e.action for e in everything] == [ActivityType.READ, ActivityType.DELETE]


async def test_async_handlers_are_awaited() -> None:
    received: list[str] = []

    async def handler(event: ActivityEvent) -> None:
        await asyncio.sleep(0)
        received.append(event.action.value)

    emitter = AuditEmitter([AuditSubscription(handler)])
    emitter.emit(ActivityType.UPDATE, _event(ActivityType.UPDATE))
    await emitter.drain()
    assert received == ["update"]


async def test_running_dispatcher_delivers_in_order_and_stops() -> None:
    received: list[str | None] = []
    emitter = AuditEmitter([AuditSubscription(lambda e: received.append(e.object.id))])
    await emitter.start()
    assert emitter.is_running()

    for record_id in ("s1", "s2", "s3"):
        emitter.emit(ActivityType.READ, _event(record_id=record_id))
    await emitter.drain()
    assert received == ["s1", "s2", "s3"]

    await emitter.stop()
    assert not emitter.is_running()


async def test_stop_delivers_pending_events() -> None:
    received: list[ActivityEvent] = []
    emitter = AuditEmitter([AuditSubscription(received.append)])
    await emitter.start()
    emitter.emit(ActivityType.DELETE, _event(ActivityType.DELETE))
    await emitter.stop()
    assert len(received) == 1


async def test_start_is_idempotent() -> None:
    emitter = AuditEmitter()
    await emitter.start()
    task = emitter._task
    await emitter.start()
    assert emitter._task is task
    await emitter.stop()


async def test_full_queue_drops_event_and_logs(caplog) -> None:
    received: list[ActivityEvent] = []
    emitter = AuditEmitter([AuditSubscription(received.append)], maxsize=1)
    with caplog.at_level(logging.ERROR):
        emitter.emit(ActivityType.CREATE, _event(ActivityType.CREATE))
        emitter.emit(ActivityType.DELETE, _event(ActivityType.DELETE))

    assert emitter.pending() == 1
    assert "Audit queue full (maxsize=1); dropped delete event for segment" in caplog.text
    await emitter.drain()
    assert [e.action for e in received] == [ActivityType.CREATE]


def test_subscriptions_are_fixed_at_construction() -> None:
    subscription = AuditSubscription(print, name="printer")
    emitter = AuditEmitter([subscription])
    assert emitter.subscriptions == (subscription,)
    assert subscription.label == "printer"
    assert AuditSubscription(print).label == "print"
