"""Request Schemas — Pydantic models for the entity API boundary.

Invariants:
    - Values stay untyped (Any): the model schema and ACL decide what is applied
    - sorting values are NOT coerced: non-boolean entries must reach the resolver
      unchanged so it can ignore them
"""

from typing import Any

from pydantic import BaseModel, Field


class ListRequest(BaseModel):
    """Listing input: filter map and sort map (field → descending)."""
    filter: dict[str, Any] | None = None
    sorting: dict[str, Any] | None = None


class StateChangeRequest(BaseModel):
    """State field values applied during destroy / task completion."""
    state: dict[str, Any] | None = None


class UpdateResponse(BaseModel):
    success: bool


class DestroyResponse(BaseModel):
    destroyed: bool


class TaskListResponse(BaseModel):
    tasks: list[dict[str, Any]] = Field(default_factory=list)
