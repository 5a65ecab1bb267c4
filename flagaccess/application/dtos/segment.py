"""DTOs for segments and the flags associated with them (no dependency on ORM)."""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class FlagRef:
    """Flag as seen through a segment's ``flags`` association."""

    id: str
    key: str
    name: str


@dataclass(frozen=True)
class SegmentRecord:
    """Segment read-model (result of find_all, find_one, insert, etc.)."""

    id: str
    name: str
    description: str | None
    rules: list[dict[str, Any]]
    archived: bool
    created_at: datetime | None
    updated_at: datetime | None
    flags: tuple[FlagRef, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping used by permission filters and audit payloads."""
        data = asdict(self)
        data["flags"] = [asdict(flag) for flag in self.flags]
        return data
