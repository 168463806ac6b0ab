"""Model Schema — static, immutable field classification for one entity type.

Invariants:
    - Built once per entity type at startup; never mutated afterward
    - Field names are unique within a schema
    - An element is never both a relation and listing-filterable
    - read_fields / input_fields are ceilings: policy can only narrow them
    - Relations are never input fields, whatever their input flag says
    - All functions are PURE: no IO, no async

Design Decisions:
    - Frozen dataclasses + MappingProxyType: a closed, typed table built from a
      declarative element list, queried instead of dynamic attribute lookup
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from workflow_model.core.errors import ConfigurationError


@dataclass(frozen=True)
class Element:
    """One field's schema declaration."""
    field: str
    input: bool = True
    is_owner_field: bool = False
    join_field: str | None = None
    is_state_field: bool = False
    is_relation: bool = False
    listing_filterable: bool = False
    listing_filter_multiple: bool = False
    listing_sortable: bool = False
    default_value: Any = None
    default_enum: str | None = None
    default_enum_key: str | None = None


@dataclass(frozen=True)
class ModelSchema:
    """Classified view over an ordered element list."""
    elements: tuple[Element, ...]
    input_enabled: bool
    relation_fields: tuple[Element, ...]
    owner_fields: tuple[Element, ...]
    state_fields: tuple[Element, ...]
    listing_filter_fields: tuple[Element, ...]
    listing_sortable_fields: tuple[Element, ...]
    read_fields: Mapping[str, Element]
    input_fields: Mapping[str, Element]

    @property
    def relation_field_names(self) -> list[str]:
        return [e.field for e in self.relation_fields]

    @property
    def owner_join_fields(self) -> list[str]:
        return [e.join_field for e in self.owner_fields]

    @property
    def state_field_names(self) -> list[str]:
        return [e.field for e in self.state_fields]

    def element(self, field_name: str) -> Element | None:
        return self.read_fields.get(field_name)


# ─── Classification filters ─────────────────────────────────────

def filter_relation_elements(elements: Iterable[Element]) -> tuple[Element, ...]:
    return tuple(e for e in elements if e.is_relation)


def filter_owner_elements(elements: Iterable[Element]) -> tuple[Element, ...]:
    """Owner fields need a join field to compare against the identity id."""
    return tuple(e for e in elements if e.is_owner_field and e.join_field)


def filter_state_elements(elements: Iterable[Element]) -> tuple[Element, ...]:
    return tuple(e for e in elements if e.is_state_field)


def filter_listing_filter_elements(elements: Iterable[Element]) -> tuple[Element, ...]:
    return tuple(e for e in elements if e.listing_filterable)


def filter_listing_sortable_elements(elements: Iterable[Element]) -> tuple[Element, ...]:
    return tuple(e for e in elements if e.listing_sortable)


def allowed_read_field_keys(elements: Iterable[Element]) -> dict[str, Element]:
    """Every element with a field name, regardless of its input flag."""
    return {e.field: e for e in elements if e.field}


def allowed_input_field_keys(elements: Iterable[Element]) -> dict[str, Element]:
    """Every non-relation element with a field name whose input is not explicitly false."""
    return {
        e.field: e for e in elements
        if e.field and e.input is not False and not e.is_relation
    }


def _validate_elements(elements: tuple[Element, ...]) -> None:
    seen: set[str] = set()
    for e in elements:
        if e.field in seen:
            raise ConfigurationError(f"Duplicate field '{e.field}' in model schema.")
        seen.add(e.field)
        if e.is_relation and e.listing_filterable:
            raise ConfigurationError(
                f"Field '{e.field}' cannot be both a relation and listing-filterable.",
            )
        if e.is_owner_field and not e.join_field:
            raise ConfigurationError(
                f"Owner field '{e.field}' must declare a join field.",
            )


def build_model_schema(
    elements: Iterable[Element], input_enabled: bool = False,
) -> ModelSchema:
    """Classify an ordered element list into an immutable ModelSchema."""
    ordered = tuple(elements)
    _validate_elements(ordered)
    return ModelSchema(
        elements=ordered,
        input_enabled=input_enabled,
        relation_fields=filter_relation_elements(ordered),
        owner_fields=filter_owner_elements(ordered),
        state_fields=filter_state_elements(ordered),
        listing_filter_fields=filter_listing_filter_elements(ordered),
        listing_sortable_fields=filter_listing_sortable_elements(ordered),
        read_fields=MappingProxyType(allowed_read_field_keys(ordered)),
        input_fields=MappingProxyType(allowed_input_field_keys(ordered)),
    )
