"""Root conftest — environment, SQLite database and fake workflow engine shared by all suites.

Invariants:
    - Every test gets a fresh SQLite database under tmp_path
    - Identities alice, bob and carol exist; none of them own anything until seeded
    - The workflow engine is always the in-memory FakeWorkflowEngine

Design Decisions:
    - File-backed SQLite (not :memory:): stores open one session per call and
      some calls run concurrently, so every connection must see the same database
"""

import os

# Ensure tests never reach a real database or workflow engine
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("WORKFLOW_ENGINE_URL", "http://workflow-engine.invalid/engine-rest")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession, create_async_engine, async_sessionmaker,
)

from workflow_model.db.base import Base  # noqa: E402
from workflow_model.models.identity import Identity  # noqa: E402
from workflow_model.models.submission import Submission  # noqa: E402

from tests.services.fake_workflow import FakeWorkflowEngine  # noqa: E402


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'workflow_model_test.db'}", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def identities(session_factory):
    people = {
        name: Identity(id=name, email=f"{name}@example.org", display_name=name.title())
        for name in ("alice", "bob", "carol")
    }
    async with session_factory() as db:
        db.add_all(people.values())
        await db.commit()
    return people


@pytest.fixture
def workflow():
    return FakeWorkflowEngine()


@pytest.fixture
def seed_submission(session_factory):
    """Insert a Submission directly; phase defaults to draft."""
    async def _seed(**values) -> Submission:
        values.setdefault("phase", "draft")
        submission = Submission(**values)
        async with session_factory() as db:
            db.add(submission)
            await db.commit()
        return submission
    return _seed


@pytest.fixture
def load_submission(session_factory):
    async def _load(submission_id: str) -> Submission | None:
        async with session_factory() as db:
            return await db.get(Submission, submission_id)
    return _load
