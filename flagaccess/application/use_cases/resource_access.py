"""Resource access: permission-filtered, audited CRUD over one record store.

Every operation runs the same sequence: authorize, execute against the
store, filter, emit one activity event, return. A denied action raises
before the store is touched and emits nothing. ``took`` covers the
authorize and execute steps only.
"""

from __future__ import annotations

import contextlib
import time
from collections.abc import Mapping, Sequence
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from flagaccess.application.dtos.activity import ActivityEvent, ActivityObject, Actor
from flagaccess.application.dtos.search import SearchResult
from flagaccess.application.interfaces.repositories import IRecordStore, RecordLike
from flagaccess.application.interfaces.services import IAuditEmitter, IPermissionResolver
from flagaccess.application.services.access_policy import (
    FieldScope,
    PermissionDecision,
    project,
)
from flagaccess.domain.exceptions import (
    FlagAccessException,
    RecordNotFoundException,
    RecordsNotFoundException,
    UnhandledPersistenceException,
    UserNotAuthorizedException,
)
from flagaccess.shared.enums import ActivityType
from flagaccess.shared.telemetry.logging import get_logger
from flagaccess.shared.telemetry.tracing import TracedOperation, add_span_attributes
from flagaccess.shared.utils.datetime import elapsed_ms, utc_now

logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=RecordLike)
CreateT = TypeVar("CreateT", bound=BaseModel)
UpdateT = TypeVar("UpdateT", bound=BaseModel)


class ResourceAccessService(Generic[RecordT, CreateT, UpdateT]):
    """list / get / create / update / delete for one resource type.

    Args:
        resource: Resource name used for authorization and audit (e.g. 'segment').
        store: Record store for the resource.
        resolver: Permission resolver.
        emitter: Audit emitter shared by the process.
        relations: Associations loaded eagerly on reads.
        input_fields: Input keys named differently from the read-model field
            they write (e.g. flag_ids writes flags); grants are checked against
            the read-model name.
        tracing: Wrap each operation in an OpenTelemetry span.
    """

    def __init__(
        self,
        resource: str,
        store: IRecordStore[RecordT],
        resolver: IPermissionResolver,
        emitter: IAuditEmitter,
        *,
        relations: Sequence[str] = (),
        input_fields: Mapping[str, str] | None = None,
        tracing: bool = True,
    ) -> None:
        self.resource = resource
        self.store = store
        self.resolver = resolver
        self.emitter = emitter
        self.relations = tuple(relations)
        self.input_fields = dict(input_fields or {})
        self.tracing = tracing

    def _span(self, operation: str, actor: Actor) -> contextlib.AbstractAsyncContextManager[Any]:
        if not self.tracing:
            return contextlib.nullcontext()
        return TracedOperation(
            f"{self.resource}.{operation}",
            {"resource": self.resource, "actor.id": actor.id},
        )

    async def _authorize(self, actor: Actor, action: ActivityType) -> PermissionDecision:
        decision = await self.resolver.resolve(actor, False, action, self.resource)
        if not decision.granted:
            raise UserNotAuthorizedException(actor.id, action.value, self.resource)
        return decision

    def _writable(self, data: dict[str, Any], fields: FieldScope) -> dict[str, Any]:
        """Input keys whose read-model field the scope permits."""
        return {
            key: value
            for key, value in data.items()
            if fields.permits(self.input_fields.get(key, key))
        }

    async def _write_scope(
        self, decision: PermissionDecision, record_id: str
    ) -> tuple[FieldScope, tuple[dict[str, Any], ...]]:
        """Writable fields and write conditions for an existing record."""
        if not decision.record_dependent:
            return decision.fields, ()
        current = await self.store.find_one(record_id, self.relations)
        if current is None:
            raise RecordNotFoundException(self.resource, record_id)
        snapshot = current.to_dict()
        fields = decision.fields_for(snapshot)
        if fields is None:
            raise RecordNotFoundException(self.resource, record_id)
        return fields, decision.write_guard(snapshot)

    def _emit(
        self,
        actor: Actor,
        action: ActivityType,
        obj: ActivityObject | None,
        started: float,
        ended: float,
        *,
        total: int | None = None,
    ) -> None:
        event = ActivityEvent(
            actor=actor,
            action=action,
            resource=self.resource,
            object=obj,
            timestamp=utc_now(),
            took=elapsed_ms(started, ended),
            type=action,
            total=total,
        )
        self.emitter.emit(action, event)

    async def get_all(self, actor: Actor) -> SearchResult:
        """Every record the actor may see; ``total`` is the unfiltered count.

        Raises:
            UserNotAuthorizedException: READ denied.
            RecordsNotFoundException: the store returned no usable result.
        """
        async with self._span("get_all", actor):
            started = time.perf_counter()
            decision = await self._authorize(actor, ActivityType.READ)
            records = await self.store.find_all(self.relations)
            if records is None:
                raise RecordsNotFoundException(self.resource)
            raw = [record.to_dict() for record in records]
            data = decision.filter(raw)
            ended = time.perf_counter()

            self._emit(actor, ActivityType.READ, None, started, ended, total=len(raw))
            add_span_attributes(total=len(raw), length=len(data))
            return SearchResult(data=data, length=len(data), total=len(raw))

    async def get_by_id(self, actor: Actor, record_id: str) -> dict[str, Any]:
        """One record, filtered for the actor.

        Raises:
            UserNotAuthorizedException: READ denied.
            RecordNotFoundException: no such record, or the actor's record scope hides it.
        """
        async with self._span("get_by_id", actor):
            started = time.perf_counter()
            decision = await self._authorize(actor, ActivityType.READ)
            record = await self.store.find_one(record_id, self.relations)
            if record is None:
                raise RecordNotFoundException(self.resource, record_id)
            filtered = decision.filter(record.to_dict())
            if filtered is None:
                raise RecordNotFoundException(self.resource, record_id)
            ended = time.perf_counter()

            self._emit(
                actor,
                ActivityType.READ,
                ActivityObject(id=record_id, type=self.resource),
                started,
                ended,
            )
            return filtered

    async def create(self, actor: Actor, data: CreateT) -> dict[str, Any]:
        """Insert the permitted fields of data; return the saved record, filtered.

        The new record must satisfy the condition of at least one CREATE
        grant; its permitted fields come from the grants it satisfies.

        Raises:
            UserNotAuthorizedException: CREATE denied, or no grant admits
                the new record (nothing written).
            ValidationException: a required field is missing after filtering.
            DuplicateRecordException: a unique value is already taken.
        """
        async with self._span("create", actor):
            started = time.perf_counter()
            decision = await self._authorize(actor, ActivityType.CREATE)
            fields = decision.fields_for(data.model_dump())
            if fields is None:
                raise UserNotAuthorizedException(actor.id, ActivityType.CREATE.value, self.resource)
            payload = self._writable(data.model_dump(exclude_unset=True), fields)
            saved = await self.store.insert(payload)
            ended = time.perf_counter()

            self._emit(
                actor,
                ActivityType.CREATE,
                ActivityObject(id=saved.id, type=self.resource, data=saved.to_dict()),
                started,
                ended,
            )
            return project(saved.to_dict(), fields)

    async def update(
        self, actor: Actor, record_id: str, data: UpdateT
    ) -> dict[str, Any]:
        """Merge the permitted fields of data over the record; return it, filtered.

        Input is filtered before the merge. Existence check and write happen
        in one conditional store call. When UPDATE grants carry conditions,
        the stored record picks the fields that may be written and the write
        only lands if the row still satisfies one of those conditions.

        Raises:
            UserNotAuthorizedException: UPDATE denied (nothing written).
            RecordNotFoundException: no such record, or no grant admits it
                (nothing written).
            UnhandledPersistenceException: the write failed unexpectedly.
        """
        async with self._span("update", actor):
            started = time.perf_counter()
            decision = await self._authorize(actor, ActivityType.UPDATE)
            fields, guard = await self._write_scope(decision, record_id)
            patch = self._writable(data.model_dump(exclude_unset=True), fields)
            try:
                merged = await self.store.merge_and_update(record_id, patch, guard)
            except FlagAccessException:
                raise
            except Exception as e:
                logger.exception(
                    "Unexpected failure updating %s with ID %s (fields: %s)",
                    self.resource,
                    record_id,
                    ", ".join(sorted(patch)) or "none",
                )
                raise UnhandledPersistenceException(self.resource, "update", e) from e
            ended = time.perf_counter()

            self._emit(
                actor,
                ActivityType.UPDATE,
                ActivityObject(id=record_id, type=self.resource, data=merged.to_dict()),
                started,
                ended,
            )
            return project(merged.to_dict(), fields)

    async def delete(self, actor: Actor, record_id: str) -> bool:
        """Archive the record (soft delete). Returns True.

        Only records satisfying the condition of a DELETE grant are archived;
        the condition is part of the conditional write.

        Raises:
            UserNotAuthorizedException: DELETE denied (nothing written).
            RecordNotFoundException: no such record, or no grant admits it.
        """
        async with self._span("delete", actor):
            started = time.perf_counter()
            decision = await self._authorize(actor, ActivityType.DELETE)
            await self.store.soft_delete(record_id, decision.write_guard())
            ended = time.perf_counter()

            self._emit(
                actor,
                ActivityType.DELETE,
                ActivityObject(id=record_id, type=self.resource),
                started,
                ended,
            )
            logger.info("Archived %s with ID %s", self.resource, record_id)
            return True
