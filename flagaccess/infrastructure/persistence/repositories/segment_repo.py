"""Segment repository (record store for the 'segment' resource). Returns application DTOs."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from flagaccess.application.dtos.segment import FlagRef, SegmentRecord
from flagaccess.domain.exceptions import (
    DuplicateRecordException,
    RecordNotFoundException,
    UnhandledPersistenceException,
    ValidationException,
)
from flagaccess.infrastructure.persistence.models.flag import Flag
from flagaccess.infrastructure.persistence.models.segment import Segment
from flagaccess.infrastructure.persistence.repositories.base import BaseRepository
from flagaccess.shared.telemetry.logging import get_logger
from flagaccess.shared.utils.datetime import ensure_utc

logger = get_logger(__name__)

RESOURCE = "segment"
_WRITABLE = frozenset({"name", "description", "rules", "archived"})


def _is_unique_violation(error: IntegrityError) -> bool:
    """True for UNIQUE violations (SQLSTATE 23505 or the SQLite message)."""
    if getattr(error.orig, "sqlstate", None) == "23505":
        return True
    return "unique" in str(error.orig).lower()


def _to_record(s: Segment, relations: Sequence[str]) -> SegmentRecord:
    """Map ORM Segment to SegmentRecord; flags only when the relation was loaded."""
    flags: tuple[FlagRef, ...] = ()
    if "flags" in relations:
        flags = tuple(FlagRef(id=f.id, key=f.key, name=f.name) for f in s.flags)
    return SegmentRecord(
        id=s.id,
        name=s.name,
        description=s.description,
        rules=list(s.rules or []),
        archived=bool(s.archived),
        created_at=ensure_utc(s.created_at),
        updated_at=ensure_utc(s.updated_at),
        flags=flags,
    )


class SegmentRepository(BaseRepository[Segment]):
    """Segment store: eager flag loading, duplicate masking, conditional writes, soft delete."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Segment)

    def _split_payload(self, data: dict[str, Any]) -> tuple[dict[str, Any], list[str] | None]:
        values = dict(data)
        flag_ids = values.pop("flag_ids", None)
        unknown = set(values) - _WRITABLE
        if unknown:
            raise ValidationException(
                f"Unknown segment fields: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        return values, flag_ids

    async def _load_flags(self, flag_ids: Sequence[str]) -> list[Flag]:
        if not flag_ids:
            return []
        result = await self.db.execute(select(Flag).where(Flag.id.in_(flag_ids)))
        found = {f.id: f for f in result.scalars().all()}
        missing = [fid for fid in flag_ids if fid not in found]
        if missing:
            raise ValidationException(
                f"Unknown flag ids: {', '.join(missing)}", field="flag_ids"
            )
        return [found[fid] for fid in flag_ids]

    async def find_all(self, relations: Sequence[str] = ()) -> list[SegmentRecord]:
        rows = await self.get_all(relations)
        return [_to_record(s, relations) for s in rows]

    async def find_one(
        self, record_id: str, relations: Sequence[str] = ()
    ) -> SegmentRecord | None:
        logger.debug("Fetching %s with ID %s", RESOURCE, record_id)
        row = await self.get_by_id(record_id, relations)
        return _to_record(row, relations) if row else None

    async def insert(self, data: dict[str, Any]) -> SegmentRecord:
        """Insert a segment (and its flag links) inside a savepoint.

        Raises:
            ValidationException: a required field is missing, or unknown
                fields or flag ids.
            DuplicateRecordException: name (or id) already taken; the
                storage error is logged, not exposed.
            UnhandledPersistenceException: any other constraint rejected the row.
        """
        values, flag_ids = self._split_payload(data)
        missing = [name for name in self.required_columns() if values.get(name) is None]
        if missing:
            raise ValidationException(
                f"Missing required segment fields: {', '.join(missing)}",
                field=missing[0],
            )
        flags = await self._load_flags(flag_ids or [])
        segment = Segment(**values)
        segment.flags = flags
        try:
            async with self.db.begin_nested():
                await self.create(segment)
        except IntegrityError as e:
            cause = e.orig if e.orig is not None else e
            if not _is_unique_violation(e):
                logger.error("Insert of %s rejected by the database: %s", RESOURCE, cause)
                raise UnhandledPersistenceException(RESOURCE, "create", e) from e
            logger.error("Insert of %s rejected by a uniqueness constraint: %s", RESOURCE, cause)
            raise DuplicateRecordException(RESOURCE) from e
        saved = await self.find_one(segment.id, ("flags",))
        if saved is None:
            raise RecordNotFoundException(RESOURCE, segment.id)
        return saved

    async def merge_and_update(
        self,
        record_id: str,
        patch: dict[str, Any],
        where: Sequence[Mapping[str, Any]] = (),
    ) -> SegmentRecord:
        """Merge patch over the stored segment; flag links replaced when flag_ids is given.

        With where, the stored row must match one of the conditions as well.

        Raises:
            RecordNotFoundException: no segment has record_id, or it matches
                none of the conditions (nothing written).
            ValidationException: unknown fields or flag ids (nothing written).
        """
        values, flag_ids = self._split_payload(patch)
        flags = await self._load_flags(flag_ids) if flag_ids is not None else None
        values["updated_at"] = func.now()
        if not await self.update_by_id(record_id, values, where):
            raise RecordNotFoundException(RESOURCE, record_id)
        if flags is not None:
            segment = await self.get_by_id(record_id, ("flags",))
            if segment is None:
                raise RecordNotFoundException(RESOURCE, record_id)
            segment.flags = flags
            await self.db.flush()
        merged = await self.find_one(record_id, ("flags",))
        if merged is None:
            raise RecordNotFoundException(RESOURCE, record_id)
        return merged

    async def soft_delete(
        self, record_id: str, where: Sequence[Mapping[str, Any]] = ()
    ) -> bool:
        """Set archived=True. The row stays in the table.

        Raises:
            RecordNotFoundException: no segment has record_id, or it matches
                none of the where conditions.
        """
        if not await self.update_by_id(
            record_id, {"archived": True, "updated_at": func.now()}, where
        ):
            raise RecordNotFoundException(RESOURCE, record_id)
        return True

    async def _on_after_create(self, obj: Segment) -> None:
        logger.info("Saved %s with ID %s in the database", RESOURCE, obj.id)

    async def _on_after_update(self, entity_id: str) -> None:
        logger.info("Updated %s with ID %s in the database", RESOURCE, entity_id)
