"""Segment access: ResourceAccessService bound to the 'segment' resource."""

from __future__ import annotations

from flagaccess.application.dtos.segment import SegmentRecord
from flagaccess.application.interfaces.repositories import IRecordStore
from flagaccess.application.interfaces.services import IAuditEmitter, IPermissionResolver
from flagaccess.application.use_cases.resource_access import ResourceAccessService
from flagaccess.schemas.segment import SegmentCreate, SegmentUpdate

SEGMENT_RESOURCE = "segment"
SEGMENT_INPUT_FIELDS = {"flag_ids": "flags"}


class SegmentService(ResourceAccessService[SegmentRecord, SegmentCreate, SegmentUpdate]):
    """CRUD on segments; flags are loaded with every read and written through flag_ids."""

    def __init__(
        self,
        store: IRecordStore[SegmentRecord],
        resolver: IPermissionResolver,
        emitter: IAuditEmitter,
        *,
        tracing: bool = True,
    ) -> None:
        super().__init__(
            SEGMENT_RESOURCE,
            store,
            resolver,
            emitter,
            relations=("flags",),
            input_fields=SEGMENT_INPUT_FIELDS,
            tracing=tracing,
        )
