"""Boundary Protocols — contracts between the resolver core and its collaborators.

Invariants:
    - Core NEVER imports from infrastructure; dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by infrastructure via dependency injection
    - WorkflowEngine implementations raise WorkflowEngineError on transport failure

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Async in Protocol: every storage and workflow call is potentially suspending IO
"""

from typing import Any, Protocol, Sequence

from workflow_model.core.domain_types import IdentityId, InstanceId, TaskId
from workflow_model.core.list_query import ListQuery


class InstanceLike(Protocol):
    """Structural contract for persisted entity instances."""
    id: InstanceId
    created: Any
    updated: Any


class IdentityLike(Protocol):
    id: IdentityId


class InstanceStore(Protocol):
    """Contract for entity persistence, implemented by infrastructure."""
    def new_instance(self, **values: Any) -> InstanceLike: ...
    async def find(
        self, instance_id: InstanceId, eager: Sequence[str] = (),
    ) -> InstanceLike | None: ...
    async def query(self, query: ListQuery) -> list[InstanceLike]: ...
    async def save(self, instance: InstanceLike) -> None: ...
    async def load_relation(self, instance: InstanceLike, field: str) -> Any: ...


class IdentityStore(Protocol):
    """Contract for identity lookup, implemented by infrastructure."""
    async def find(self, user_ref: str) -> IdentityLike | None: ...


class WorkflowEngine(Protocol):
    """Contract for the business-process engine, implemented by infrastructure."""
    async def start_process(self, key: str, business_key: InstanceId) -> dict: ...
    async def list_process_instances(
        self, business_key: InstanceId, process_definition_key: str,
    ) -> list[dict]: ...
    async def delete_process_instance(self, process_instance_id: str) -> None: ...
    async def list_tasks(self, process_instance_business_key: InstanceId) -> list[dict]: ...
    async def complete_task(
        self, task_id: TaskId, variables: dict | None = None,
    ) -> None: ...
