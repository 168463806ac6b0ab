"""List Query — storage-agnostic description of a listing query.

Invariants:
    - Filters are AND-combined; the owner constraint is one OR-group ANDed onto them
    - Only schema-declared filterable/sortable fields ever reach a ListQuery
    - build_list_query is PURE: unknown keys and mistyped sort values are dropped
    - A list or object on a single-valued filter (or inside a multi-valued one) raises
      UserInputError before any query is built
"""

from dataclasses import dataclass, field
from typing import Any, Mapping

from workflow_model.core.enforce_acl import is_scalar_value
from workflow_model.core.errors import UserInputError
from workflow_model.core.model_schema import ModelSchema


@dataclass(frozen=True)
class FieldFilter:
    field: str
    value: Any
    multiple: bool = False


@dataclass(frozen=True)
class OwnerConstraint:
    """Rows where any of join_fields equals user_id."""
    join_fields: tuple[str, ...]
    user_id: str


@dataclass(frozen=True)
class Ordering:
    field: str
    descending: bool = False


@dataclass
class ListQuery:
    filters: list[FieldFilter] = field(default_factory=list)
    owner_constraint: OwnerConstraint | None = None
    ordering: list[Ordering] = field(default_factory=list)
    eager: tuple[str, ...] = ()


def build_filters(
    schema: ModelSchema, filter_input: Mapping[str, Any] | None,
) -> list[FieldFilter]:
    if not filter_input or not schema.listing_filter_fields:
        return []

    filters = []
    for element in schema.listing_filter_fields:
        value = filter_input.get(element.field)
        if value is None:
            continue
        if element.listing_filter_multiple:
            # multi-valued filters only accept arrays
            if isinstance(value, (list, tuple)):
                if not all(is_scalar_value(v) for v in value):
                    raise UserInputError(
                        f"Filter values for '{element.field}' must be single values.",
                    )
                filters.append(FieldFilter(element.field, list(value), multiple=True))
        elif not is_scalar_value(value):
            raise UserInputError(
                f"Filter value for '{element.field}' must be a single value.",
            )
        else:
            filters.append(FieldFilter(element.field, value))
    return filters


def build_ordering(
    schema: ModelSchema, sorting: Mapping[str, Any] | None,
) -> list[Ordering]:
    if not sorting or not schema.listing_sortable_fields:
        return []

    ordering = []
    for element in schema.listing_sortable_fields:
        if element.field not in sorting:
            continue
        value = sorting[element.field]
        if not isinstance(value, bool):
            continue
        ordering.append(Ordering(element.field, descending=value))
    return ordering


def build_list_query(
    schema: ModelSchema,
    filter_input: Mapping[str, Any] | None,
    sorting: Mapping[str, Any] | None,
    owner_user_id: str | None = None,
    eager: tuple[str, ...] = (),
) -> ListQuery:
    owner_constraint = None
    if owner_user_id is not None and schema.owner_fields:
        owner_constraint = OwnerConstraint(
            tuple(schema.owner_join_fields), owner_user_id,
        )
    return ListQuery(
        filters=build_filters(schema, filter_input),
        owner_constraint=owner_constraint,
        ordering=build_ordering(schema, sorting),
        eager=eager,
    )
