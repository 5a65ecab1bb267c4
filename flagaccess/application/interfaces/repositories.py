"""Repository interfaces (ports) for the application layer.

A record store serves one entity type. Read methods return read models
that expose ``to_dict()``; write methods raise the domain exceptions
listed on each method rather than storage-specific errors.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, TypeVar

RecordT = TypeVar("RecordT", bound="RecordLike", covariant=True)


class RecordLike(Protocol):
    """Read model that can be flattened for permission filtering and audit."""

    @property
    def id(self) -> str: ...

    def to_dict(self) -> dict[str, Any]: ...


class IRecordStore(Protocol[RecordT]):
    """Persistence for one entity type with soft-delete semantics."""

    async def find_all(self, relations: Sequence[str] = ()) -> list[RecordT]:
        """Return every record, with the named associations loaded."""

    async def find_one(
        self, record_id: str, relations: Sequence[str] = ()
    ) -> RecordT | None:
        """Return one record by id (associations loaded), or None."""

    async def insert(self, data: dict[str, Any]) -> RecordT:
        """Persist a new record.

        Raises ValidationException when a required field is missing and
        DuplicateRecordException on a uniqueness violation.
        """

    async def merge_and_update(
        self,
        record_id: str,
        patch: dict[str, Any],
        where: Sequence[Mapping[str, Any]] = (),
    ) -> RecordT:
        """Merge patch over the stored row in one conditional write.

        A non-empty where restricts the write to rows equal to one of the
        conditions on every named field. Raises RecordNotFoundException when
        no row matches; nothing is written then.
        """

    async def soft_delete(
        self, record_id: str, where: Sequence[Mapping[str, Any]] = ()
    ) -> bool:
        """Mark the record archived, under the same where rule as merge_and_update.

        Raises RecordNotFoundException if no row matches.
        """
