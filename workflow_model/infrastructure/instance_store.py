"""SQL Instance Store — SQLAlchemy implementation of InstanceStore for one mapped class.

Invariants:
    - Every call opens its own short-lived session: concurrent branches never share one
    - Filters are ANDed; the owner constraint is a single OR-group ANDed onto them
    - Only relations named in `eager` are loaded (selectinload); nothing lazy-loads later
    - Referencing an attribute the mapped class lacks raises ConfigurationError
    - SQLAlchemy failures surface as DatabaseError (via managed_session)
"""

import logging
from typing import Any, Sequence

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from workflow_model.core.errors import ConfigurationError
from workflow_model.core.list_query import ListQuery
from workflow_model.db.base import new_instance_id
from workflow_model.infrastructure.database import managed_session

logger = logging.getLogger(__name__)


class SqlInstanceStore:
    """Persists and queries instances of one resolver-managed ORM class."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        model_class: type,
    ):
        self._session_factory = session_factory
        self.model_class = model_class

    def new_instance(self, **values: Any) -> Any:
        values.setdefault("id", new_instance_id())
        return self.model_class(**values)

    def _attribute(self, name: str):
        attr = getattr(self.model_class, name, None)
        if attr is None:
            raise ConfigurationError(
                f"{self.model_class.__name__} has no attribute '{name}'.",
            )
        return attr

    def _eager_options(self, eager: Sequence[str]) -> list:
        return [selectinload(self._attribute(f)) for f in eager]

    async def find(self, instance_id: str, eager: Sequence[str] = ()) -> Any | None:
        stmt = (
            select(self.model_class)
            .where(self.model_class.id == instance_id)
            .options(*self._eager_options(eager))
        )
        async with managed_session(self._session_factory) as db:
            result = await db.execute(stmt)
            return result.scalar_one_or_none()

    async def query(self, query: ListQuery) -> list[Any]:
        stmt = select(self.model_class)

        for f in query.filters:
            column = self._attribute(f.field)
            stmt = stmt.where(column.in_(f.value) if f.multiple else column == f.value)

        if query.owner_constraint is not None:
            owner = query.owner_constraint
            stmt = stmt.where(or_(*[
                self._attribute(join_field) == owner.user_id
                for join_field in owner.join_fields
            ]))

        if query.ordering:
            stmt = stmt.order_by(*[
                self._attribute(o.field).desc() if o.descending
                else self._attribute(o.field).asc()
                for o in query.ordering
            ])

        stmt = stmt.options(*self._eager_options(query.eager))

        async with managed_session(self._session_factory) as db:
            result = await db.execute(stmt)
            return list(result.scalars().all())

    async def save(self, instance: Any) -> None:
        async with managed_session(self._session_factory) as db:
            db.add(instance)
            await db.commit()
        logger.debug(f"Saved {self.model_class.__name__} [{instance.id}]")

    async def load_relation(self, instance: Any, field: str) -> Any:
        stmt = (
            select(self.model_class)
            .where(self.model_class.id == instance.id)
            .options(selectinload(self._attribute(field)))
        )
        async with managed_session(self._session_factory) as db:
            result = await db.execute(stmt)
            fresh = result.scalar_one_or_none()
            return getattr(fresh, field) if fresh is not None else None
