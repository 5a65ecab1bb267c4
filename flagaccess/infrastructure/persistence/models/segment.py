"""Segment ORM model. A named set of targeting rules that flags can be scoped to."""

from typing import Any

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flagaccess.infrastructure.persistence.database import Base
from flagaccess.infrastructure.persistence.models.flag import Flag, flag_segment
from flagaccess.infrastructure.persistence.models.mixins import (
    ArchivableMixin,
    CuidMixin,
    JsonDocument,
    TimestampMixin,
)


class Segment(CuidMixin, TimestampMixin, ArchivableMixin, Base):
    """Segment. Table: segment. Unique name. Many-to-many with flag via flag_segment."""

    __tablename__ = "segment"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    rules: Mapped[list[dict[str, Any]]] = mapped_column(
        JsonDocument, nullable=False, default=list
    )

    flags: Mapped[list[Flag]] = relationship(
        secondary=flag_segment, lazy="raise", order_by=Flag.key
    )
