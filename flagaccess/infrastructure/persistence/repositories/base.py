"""Base repository: generic reads, inserts and conditional updates by primary key."""

from collections.abc import Mapping, Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import and_, func, inspect as sa_inspect, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from flagaccess.infrastructure.persistence.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with get_by_id, get_all, count, create, update_by_id and hooks.

    Reads accept relation names which are loaded eagerly (selectinload) and
    always repopulate identity-mapped objects, so rows changed by bulk
    UPDATE statements in the same session are never served stale.
    Subclasses override _on_after_create / _on_after_update.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    def _load_options(self, relations: Sequence[str]) -> list[Any]:
        """selectinload options for relation names; unknown names raise ValueError."""
        known = sa_inspect(self.model).relationships
        options = []
        for name in relations:
            if name not in known:
                raise ValueError(
                    f"{self.model.__name__} has no relation {name!r} "
                    f"(known: {', '.join(sorted(known.keys())) or 'none'})"
                )
            options.append(selectinload(getattr(self.model, name)))
        return options

    async def get_by_id(
        self, entity_id: str, relations: Sequence[str] = ()
    ) -> ModelType | None:
        """Return a single record by primary key, or None."""
        model: Any = self.model
        stmt = (
            select(self.model)
            .where(model.id == entity_id)
            .options(*self._load_options(relations))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_all(self, relations: Sequence[str] = ()) -> list[ModelType]:
        """Return every record ordered by primary key."""
        model: Any = self.model
        stmt = (
            select(self.model)
            .options(*self._load_options(relations))
            .order_by(model.id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count(self) -> int:
        """Return the raw number of rows (archived included)."""
        result = await self.db.execute(select(func.count()).select_from(self.model))
        return int(result.scalar_one())

    async def create(self, obj: ModelType) -> ModelType:
        """Persist a new record and run _on_after_create hook."""
        self.db.add(obj)
        await self.db.flush()
        await self._on_after_create(obj)
        return obj

    def required_columns(self) -> list[str]:
        """Columns an insert must supply: NOT NULL, no default, not the primary key."""
        return [
            column.key
            for column in sa_inspect(self.model).columns
            if not column.nullable
            and not column.primary_key
            and column.default is None
            and column.server_default is None
        ]

    async def update_by_id(
        self,
        entity_id: str,
        values: dict[str, Any],
        where: Sequence[Mapping[str, Any]] = (),
    ) -> bool:
        """Apply values to the row with entity_id in one conditional UPDATE.

        Existence check and write are the same statement, so a concurrent
        delete cannot slip in between. When where is given the row must also
        match one of its conditions (every column equal). Returns False
        (nothing written) when no row matched.
        """
        model: Any = self.model
        stmt = update(self.model).where(model.id == entity_id)
        if where:
            stmt = stmt.where(
                or_(
                    *(
                        and_(*(getattr(model, name) == value for name, value in cond.items()))
                        for cond in where
                    )
                )
            )
        stmt = stmt.values(**values).execution_options(synchronize_session=False)
        result = await self.db.execute(stmt)
        if result.rowcount == 0:
            return False
        await self._on_after_update(entity_id)
        return True

    async def _on_after_create(self, obj: ModelType) -> None:
        """Override in subclasses to invalidate caches or emit events."""

    async def _on_after_update(self, entity_id: str) -> None:
        """Override in subclasses to invalidate caches or emit events."""
