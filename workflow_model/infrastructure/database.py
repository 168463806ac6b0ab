"""Database Sessions — async engine, per-call sessions and SQLAlchemy error mapping.

Invariants:
    - A session opened through managed_session is always closed, and rolled back on failure
    - SQLAlchemy exceptions never escape: they surface as DatabaseError with the failed operation
    - Sessions keep instances readable after commit (expire_on_commit=False): resolvers shape
      them after the session that loaded them is gone
    - Pool sizing only applies to server databases; SQLite keeps SQLAlchemy's default pool

Design Decisions:
    - Module-level db_manager set by init_db from the FastAPI lifespan; readiness probes use it
    - Stores take a session factory, not a manager, so tests hand them their own engine
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

from workflow_model.core.errors import DatabaseError

logger = logging.getLogger(__name__)

# Most specific first: IntegrityError and OperationalError are DBAPIErrors.
_ERROR_MAP: tuple[tuple[type[SQLAlchemyError], str, str], ...] = (
    (IntegrityError, "Integrity constraint violated", "commit"),
    (OperationalError, "Connection or operational error", "execute"),
    (DBAPIError, "Database driver error", "query"),
    (SQLAlchemyError, "Database operation failed", "unknown"),
)


def _to_database_error(exc: SQLAlchemyError) -> DatabaseError:
    for exc_type, message, operation in _ERROR_MAP:
        if isinstance(exc, exc_type):
            return DatabaseError(message, operation)
    return DatabaseError("Database operation failed", "unknown")


@asynccontextmanager
async def managed_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    session = session_factory()
    try:
        yield session
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"{type(e).__name__}: {e}")
        raise _to_database_error(e) from e
    finally:
        await session.close()


class DatabaseSessionManager:
    """Owns the async engine and the session factory handed to the stores."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        engine_kwargs: dict = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory

    def session(self):
        return managed_session(self._session_factory)

    async def health_check(self) -> bool:
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
        except (DatabaseError, OSError) as e:
            logger.error(f"Database readiness check failed: {e}")
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()


db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager
