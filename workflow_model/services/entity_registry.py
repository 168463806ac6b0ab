"""Entity Registry — explicit binding of entity type names to their InstanceResolver.

Invariants:
    - Every entity type maps to exactly one ORM class and one resolver (explicit dict, no discovery)
    - Definitions are loaded and validated once at startup; resolvers are immutable afterward
    - Asking for an unknown entity type raises NotFoundError
    - enums.json (if present) is the process-wide enum table; every other *.json is a TaskDefinition
"""

import json
import logging
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from workflow_model.config import Settings
from workflow_model.core.errors import ConfigurationError, NotFoundError
from workflow_model.core.repository_protocols import IdentityStore, WorkflowEngine
from workflow_model.infrastructure.identity_store import SqlIdentityStore
from workflow_model.infrastructure.instance_store import SqlInstanceStore
from workflow_model.models.submission import Submission
from workflow_model.schemas.definitions import (
    EnumDefinition, EnumTable, TaskDefinition, build_enum_table,
)
from workflow_model.services.instance_resolver import InstanceResolver

logger = logging.getLogger(__name__)

DEFAULT_DEFINITIONS_DIR = Path(__file__).resolve().parent.parent / "definitions"
ENUMS_FILE = "enums.json"

# Adding an entity type requires editing this dict.
MODEL_CLASSES: dict[str, type] = {
    "submission": Submission,
}


class EntityRegistry:
    """Entity type name → InstanceResolver."""

    def __init__(self):
        self._resolvers: dict[str, InstanceResolver] = {}

    def register(self, resolver: InstanceResolver) -> None:
        if resolver.entity_type in self._resolvers:
            raise ConfigurationError(
                f"Entity type '{resolver.entity_type}' registered twice.",
            )
        self._resolvers[resolver.entity_type] = resolver

    def get(self, entity_type: str) -> InstanceResolver:
        resolver = self._resolvers.get(entity_type)
        if resolver is None:
            raise NotFoundError(f"Unknown entity type '{entity_type}'.")
        return resolver

    def names(self) -> list[str]:
        return sorted(self._resolvers)

    def __contains__(self, entity_type: str) -> bool:
        return entity_type in self._resolvers


def load_enum_table(directory: Path) -> EnumTable:
    path = directory / ENUMS_FILE
    if not path.exists():
        return {}
    raw = json.loads(path.read_text(encoding="utf-8"))
    return build_enum_table([EnumDefinition.model_validate(e) for e in raw])


def load_task_definitions(directory: Path) -> list[TaskDefinition]:
    definitions = []
    for path in sorted(directory.glob("*.json")):
        if path.name == ENUMS_FILE:
            continue
        definitions.append(
            TaskDefinition.model_validate_json(path.read_text(encoding="utf-8")),
        )
    return definitions


def build_registry(
    session_factory: async_sessionmaker[AsyncSession],
    workflow: WorkflowEngine,
    settings: Settings,
    identities: IdentityStore | None = None,
) -> EntityRegistry:
    """Load definitions and wire one resolver per entity type."""
    directory = (
        Path(settings.definitions_dir) if settings.definitions_dir
        else DEFAULT_DEFINITIONS_DIR
    )
    enums = load_enum_table(directory)
    identities = identities or SqlIdentityStore(session_factory)

    registry = EntityRegistry()
    for definition in load_task_definitions(directory):
        model_class = MODEL_CLASSES.get(definition.name)
        if model_class is None:
            raise ConfigurationError(
                f"No model class bound for entity type '{definition.name}'.",
            )
        registry.register(InstanceResolver(
            SqlInstanceStore(session_factory, model_class),
            definition,
            identities,
            workflow,
            enums,
            grant_administrator=settings.grant_administrator_to_authenticated,
            debug_acl_rules=settings.debug_acl_rules,
        ))
        logger.info(f"Registered entity type [{definition.name}]")

    if settings.grant_administrator_to_authenticated:
        logger.warning(
            "Every authenticated caller is granted the administrator role "
            "(GRANT_ADMINISTRATOR_TO_AUTHENTICATED=true)",
        )
    return registry
