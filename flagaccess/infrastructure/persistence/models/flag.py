"""Flag ORM model and the flag <-> segment association table."""

from sqlalchemy import Column, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, mapped_column

from flagaccess.infrastructure.persistence.database import Base
from flagaccess.infrastructure.persistence.models.mixins import (
    ArchivableMixin,
    CuidMixin,
    TimestampMixin,
)

flag_segment = Table(
    "flag_segment",
    Base.metadata,
    Column("flag_id", String, ForeignKey("flag.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "segment_id", String, ForeignKey("segment.id", ondelete="CASCADE"), primary_key=True
    ),
)


class Flag(CuidMixin, TimestampMixin, ArchivableMixin, Base):
    """Feature flag. Table: flag. Unique key."""

    __tablename__ = "flag"

    key: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
