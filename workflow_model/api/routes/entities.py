"""Entity Routes — HTTP surface over one InstanceResolver per entity type.

Invariants:
    - One RequestContext per request (FastAPI caches the dependency per request)
    - The caller's user reference is read from the configured header only
    - Routes never evaluate policy: every decision happens inside InstanceResolver
    - Created instances are returned through get(), so read-ACL applies to them too
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request, status

from workflow_model.api.field_selection import default_fields, requested_fields
from workflow_model.api.serialize import serialize_instance
from workflow_model.config import get_settings
from workflow_model.core.request_context import RequestContext
from workflow_model.schemas.requests import (
    DestroyResponse, ListRequest, StateChangeRequest, TaskListResponse, UpdateResponse,
)
from workflow_model.services.entity_registry import EntityRegistry
from workflow_model.services.instance_resolver import InstanceResolver

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/entities/{entity_type}", tags=["entities"])


def get_registry(request: Request) -> EntityRegistry:
    return request.app.state.registry


def get_resolver(
    entity_type: str, registry: EntityRegistry = Depends(get_registry),
) -> InstanceResolver:
    return registry.get(entity_type)


def get_request_context(request: Request) -> RequestContext:
    user_ref = request.headers.get(get_settings().user_header)
    return RequestContext(user=user_ref or None)


def _selected_fields(resolver: InstanceResolver, fields: str | None) -> list[str]:
    return requested_fields(fields, default_fields(resolver.schema))


@router.get("/{instance_id}")
async def get_instance(
    instance_id: str,
    fields: str | None = Query(None, description="Comma-separated field selection"),
    resolver: InstanceResolver = Depends(get_resolver),
    context: RequestContext = Depends(get_request_context),
):
    shaped = await resolver.get(
        instance_id, _selected_fields(resolver, fields), context,
    )
    return serialize_instance(shaped)


@router.post("/search")
async def list_instances(
    body: ListRequest,
    fields: str | None = Query(None, description="Comma-separated field selection"),
    resolver: InstanceResolver = Depends(get_resolver),
    context: RequestContext = Depends(get_request_context),
):
    rows = await resolver.list_instances(
        body.filter, body.sorting, _selected_fields(resolver, fields), context,
    )
    return {"results": [serialize_instance(r) for r in rows]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_instance(
    fields: str | None = Query(None, description="Comma-separated field selection"),
    resolver: InstanceResolver = Depends(get_resolver),
    context: RequestContext = Depends(get_request_context),
):
    instance = await resolver.create(context)
    shaped = await resolver.get(
        instance.id, _selected_fields(resolver, fields), context,
    )
    return serialize_instance(shaped)


@router.patch("/{instance_id}", response_model=UpdateResponse)
async def update_instance(
    instance_id: str,
    values: dict[str, Any] = Body(...),
    resolver: InstanceResolver = Depends(get_resolver),
    context: RequestContext = Depends(get_request_context),
):
    success = await resolver.update(instance_id, values, context)
    return UpdateResponse(success=success)


@router.post("/{instance_id}/destroy", response_model=DestroyResponse)
async def destroy_instance(
    instance_id: str,
    body: StateChangeRequest,
    resolver: InstanceResolver = Depends(get_resolver),
    context: RequestContext = Depends(get_request_context),
):
    destroyed = await resolver.destroy(instance_id, body.state, context)
    return DestroyResponse(destroyed=destroyed)


@router.get("/{instance_id}/tasks", response_model=TaskListResponse)
async def list_tasks(
    instance_id: str,
    resolver: InstanceResolver = Depends(get_resolver),
    context: RequestContext = Depends(get_request_context),
):
    tasks = await resolver.get_tasks(instance_id, context)
    return TaskListResponse(tasks=tasks)


@router.post(
    "/{instance_id}/tasks/{task_id}/complete", response_model=UpdateResponse,
)
async def complete_task(
    instance_id: str,
    task_id: str,
    body: StateChangeRequest,
    resolver: InstanceResolver = Depends(get_resolver),
    context: RequestContext = Depends(get_request_context),
):
    success = await resolver.complete_task(instance_id, task_id, body.state, context)
    return UpdateResponse(success=success)
