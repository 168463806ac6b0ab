"""SQL Identity Store — resolves a user reference to an Identity row."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from workflow_model.infrastructure.database import managed_session
from workflow_model.models.identity import Identity


class SqlIdentityStore:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def find(self, user_ref: str) -> Identity | None:
        async with managed_session(self._session_factory) as db:
            result = await db.execute(
                select(Identity).where(Identity.id == user_ref),
            )
            return result.scalar_one_or_none()
