"""Audit emitter: non-blocking publish/subscribe for activity events.

Constructed once at startup with an explicit list of subscriptions and
passed down to every service that emits. emit() only enqueues; a single
dispatcher task delivers events to matching subscribers in order. A
subscriber that raises is logged and skipped; the failure never reaches
the emitting operation or the other subscribers.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass

from flagaccess.application.dtos.activity import ActivityEvent
from flagaccess.shared.enums import ActivityType
from flagaccess.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

AuditHandler = Callable[[ActivityEvent], Awaitable[None] | None]


@dataclass(frozen=True)
class AuditSubscription:
    """A handler and the event types it wants (None = every type)."""

    handler: AuditHandler
    event_types: frozenset[ActivityType] | None = None
    name: str | None = None

    @classmethod
    def for_types(
        cls, handler: AuditHandler, event_types: Iterable[ActivityType], name: str | None = None
    ) -> AuditSubscription:
        return cls(handler=handler, event_types=frozenset(event_types), name=name)

    @property
    def label(self) -> str:
        return self.name or getattr(self.handler, "__qualname__", repr(self.handler))

    def matches(self, event_type: ActivityType) -> bool:
        return self.event_types is None or event_type in self.event_types


class AuditEmitter:
    """Queue-backed event sink with process lifetime (start at startup, stop at exit)."""

    def __init__(
        self,
        subscriptions: Sequence[AuditSubscription] = (),
        *,
        maxsize: int = 0,
    ) -> None:
        self._subscriptions = tuple(subscriptions)
        self._queue: asyncio.Queue[tuple[ActivityType, ActivityEvent]] = asyncio.Queue(
            maxsize=maxsize
        )
        self._task: asyncio.Task[None] | None = None

    @property
    def subscriptions(self) -> tuple[AuditSubscription, ...]:
        """Subscriptions fixed at construction (read-only)."""
        return self._subscriptions

    def is_running(self) -> bool:
        """Return True while the dispatcher task is alive."""
        return self._task is not None and not self._task.done()

    def pending(self) -> int:
        """Number of events queued but not yet delivered."""
        return self._queue.qsize()

    def emit(self, event_type: ActivityType, event: ActivityEvent) -> None:
        """Queue an event for delivery and return immediately.

        When a bounded queue is full the event is dropped and logged.
        """
        try:
            self._queue.put_nowait((event_type, event))
        except asyncio.QueueFull:
            logger.error(
                "Audit queue full (maxsize=%d); dropped %s event for %s",
                self._queue.maxsize,
                event_type.value,
                event.resource,
            )

    async def start(self) -> None:
        """Start the dispatcher task. Call once at startup."""
        if self.is_running():
            return
        self._task = asyncio.create_task(self._dispatch_loop(), name="audit-emitter")
        logger.info(
            "Audit emitter started with %d subscription(s)", len(self._subscriptions)
        )

    async def drain(self) -> None:
        """Wait until every event queued so far has been delivered.

        Without a running dispatcher, pending events are delivered inline.
        """
        if self.is_running():
            await self._queue.join()
            return
        while not self._queue.empty():
            event_type, event = self._queue.get_nowait()
            try:
                await self._deliver(event_type, event)
            finally:
                self._queue.task_done()

    async def stop(self) -> None:
        """Deliver what is pending, then stop the dispatcher. Call at shutdown."""
        await self.drain()
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Audit emitter stopped")

    async def _dispatch_loop(self) -> None:
        while True:
            event_type, event = await self._queue.get()
            try:
                await self._deliver(event_type, event)
            finally:
                self._queue.task_done()

    async def _deliver(self, event_type: ActivityType, event: ActivityEvent) -> None:
        for subscription in self._subscriptions:
            if not subscription.matches(event_type):
                continue
            try:
                result = subscription.handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "Audit subscriber %s failed for %s event on %s",
                    subscription.label,
                    event_type.value,
                    event.resource,
                )
