"""SQL store tests — session error mapping, attribute validation and health checks.

Tests cover:
    - managed_session maps SQLAlchemy failures to DatabaseError and rolls back
    - SqlInstanceStore rejects attributes the mapped class lacks
    - new_instance assigns a business-key id before the first flush
    - DatabaseSessionManager health check on SQLite
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from workflow_model.core.errors import ConfigurationError, DatabaseError
from workflow_model.core.list_query import FieldFilter, ListQuery
from workflow_model.db.base import Base
from workflow_model.infrastructure.database import DatabaseSessionManager, managed_session
from workflow_model.infrastructure.identity_store import SqlIdentityStore
from workflow_model.infrastructure.instance_store import SqlInstanceStore
from workflow_model.models.identity import Identity
from workflow_model.models.submission import Submission


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'stores.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


async def test_integrity_error_mapped_to_database_error(session_factory):
    async with managed_session(session_factory) as db:
        db.add(Identity(id="alice", email="alice@example.org"))
        await db.commit()

    with pytest.raises(DatabaseError) as exc_info:
        async with managed_session(session_factory) as db:
            db.add(Identity(id="alice", email="again@example.org"))
            await db.commit()
    assert exc_info.value.operation == "commit"
    assert exc_info.value.code == "DATABASE_ERROR"


async def test_identity_store_find(session_factory):
    async with managed_session(session_factory) as db:
        db.add(Identity(id="alice", email="alice@example.org"))
        await db.commit()

    store = SqlIdentityStore(session_factory)
    assert (await store.find("alice")).email == "alice@example.org"
    assert await store.find("nobody") is None


async def test_instance_store_rejects_unknown_attribute(session_factory):
    store = SqlInstanceStore(session_factory, Submission)
    with pytest.raises(ConfigurationError, match="no attribute 'nope'"):
        await store.query(ListQuery(filters=[FieldFilter("nope", 1)]))


def test_new_instance_assigns_id():
    store = SqlInstanceStore(None, Submission)
    first, second = store.new_instance(title="a"), store.new_instance(title="b")
    assert first.id and second.id and first.id != second.id
    assert store.new_instance(id="fixed").id == "fixed"


async def test_load_relation(session_factory):
    async with managed_session(session_factory) as db:
        db.add(Identity(id="alice", email="alice@example.org"))
        db.add(Submission(id="s-1", title="Mine", submitter_id="alice"))
        await db.commit()

    store = SqlInstanceStore(session_factory, Submission)
    instance = await store.find("s-1")
    assert (await store.load_relation(instance, "submitter")).id == "alice"


async def test_session_manager_health_check(tmp_path):
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'health.db'}")
    assert await manager.health_check() is True
    await manager.dispose()
