"""Service test fixtures — resolvers over the shared SQLite database and fake workflow engine.

Invariants:
    - make_resolver builds a Submission resolver from the shipped definition unless
      another TaskDefinition is passed
    - admin_resolver grants the administrator target to every authenticated caller
"""

import pytest

from workflow_model.infrastructure.identity_store import SqlIdentityStore
from workflow_model.infrastructure.instance_store import SqlInstanceStore
from workflow_model.models.submission import Submission
from workflow_model.schemas.definitions import TaskDefinition
from workflow_model.services.entity_registry import (
    DEFAULT_DEFINITIONS_DIR, load_enum_table,
)
from workflow_model.services.instance_resolver import InstanceResolver


@pytest.fixture
def submission_definition() -> TaskDefinition:
    path = DEFAULT_DEFINITIONS_DIR / "submission.json"
    return TaskDefinition.model_validate_json(path.read_text(encoding="utf-8"))


@pytest.fixture
def enums():
    return load_enum_table(DEFAULT_DEFINITIONS_DIR)


@pytest.fixture
def make_resolver(session_factory, workflow, enums, submission_definition, identities):
    def _make(definition: TaskDefinition | None = None, **kwargs) -> InstanceResolver:
        return InstanceResolver(
            SqlInstanceStore(session_factory, Submission),
            definition or submission_definition,
            SqlIdentityStore(session_factory),
            workflow,
            enums,
            **kwargs,
        )
    return _make


@pytest.fixture
def resolver(make_resolver) -> InstanceResolver:
    return make_resolver()


@pytest.fixture
def admin_resolver(make_resolver) -> InstanceResolver:
    return make_resolver(grant_administrator=True)

