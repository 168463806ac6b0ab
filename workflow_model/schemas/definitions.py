"""Definition Schemas — Pydantic models for declarative entity, ACL and enum definitions.

Invariants:
    - JSON definitions use camelCase keys (isOwnerField, joinField, processKey, ...)
    - ElementDefinition.input defaults to True; only an explicit false removes write access
      (relations never accept input)
    - to_element / to_rule / to_acl_set convert into frozen core types once at startup
    - Unknown action / target names are rejected at load time
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from workflow_model.core.acl import AclRule, AclSet
from workflow_model.core.domain_types import AclAction, AclTarget, Restriction
from workflow_model.core.model_schema import Element, ModelSchema, build_model_schema


class _Definition(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ElementDefinition(_Definition):
    """One field declaration inside a model definition."""
    field: str = Field(min_length=1)
    type: str | None = None
    input: bool = True
    is_owner_field: bool = Field(False, alias="isOwnerField")
    join_field: str | None = Field(None, alias="joinField")
    is_state_field: bool = Field(False, alias="isStateField")
    is_relation: bool = Field(False, alias="isRelation")
    listing_filterable: bool = Field(False, alias="listingFilterable")
    listing_filter_multiple: bool = Field(False, alias="listingFilterMultiple")
    listing_sortable: bool = Field(False, alias="listingSortable")
    default_value: Any = Field(None, alias="defaultValue")
    default_enum: str | None = Field(None, alias="defaultEnum")
    default_enum_key: str | None = Field(None, alias="defaultEnumKey")

    def to_element(self) -> Element:
        return Element(
            field=self.field,
            input=self.input,
            is_owner_field=self.is_owner_field,
            join_field=self.join_field,
            is_state_field=self.is_state_field,
            is_relation=self.is_relation,
            listing_filterable=self.listing_filterable,
            listing_filter_multiple=self.listing_filter_multiple,
            listing_sortable=self.listing_sortable,
            default_value=self.default_value,
            default_enum=self.default_enum,
            default_enum_key=self.default_enum_key,
        )


class ModelDefinition(_Definition):
    input: bool = False
    elements: list[ElementDefinition] = Field(default_factory=list)

    def to_schema(self) -> ModelSchema:
        return build_model_schema(
            (e.to_element() for e in self.elements), input_enabled=self.input,
        )


class AclRuleDefinition(_Definition):
    """One ACL rule as written in a definition file."""
    targets: list[str] = Field(min_length=1)
    actions: list[str] = Field(min_length=1)
    allow: bool = True
    allowed_fields: list[str] | None = Field(None, alias="allowedFields")
    restrictions: list[str] | None = None
    tasks: list[str] | None = None
    conditions: dict[str, list[Any]] | None = None
    description: str | None = None

    @field_validator("targets")
    @classmethod
    def known_targets(cls, v: list[str]) -> list[str]:
        valid = {t.value for t in AclTarget}
        unknown = [t for t in v if t not in valid]
        if unknown:
            raise ValueError(f"unknown ACL targets: {unknown}")
        return v

    @field_validator("actions")
    @classmethod
    def known_actions(cls, v: list[str]) -> list[str]:
        valid = {a.value for a in AclAction}
        unknown = [a for a in v if a not in valid]
        if unknown:
            raise ValueError(f"unknown ACL actions: {unknown}")
        return v

    @field_validator("restrictions")
    @classmethod
    def known_restrictions(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        valid = {r.value for r in Restriction}
        unknown = [r for r in v if r not in valid]
        if unknown:
            raise ValueError(f"unknown ACL restrictions: {unknown}")
        return v

    def to_rule(self) -> AclRule:
        return AclRule(
            targets=frozenset(self.targets),
            actions=frozenset(self.actions),
            allow=self.allow,
            allowed_fields=(
                frozenset(self.allowed_fields)
                if self.allowed_fields is not None else None
            ),
            allowed_restrictions=(
                frozenset(self.restrictions) if self.restrictions else None
            ),
            allowed_tasks=(
                frozenset(self.tasks) if self.tasks is not None else None
            ),
            conditions=(
                {k: tuple(v) for k, v in self.conditions.items()}
                if self.conditions else None
            ),
            label=self.description,
        )


class TaskOptions(_Definition):
    process_key: str = Field(min_length=1, alias="processKey")


class TaskDefinition(_Definition):
    """Entity type binding: model schema, workflow process and ACL rules."""
    name: str = Field(min_length=1)
    options: TaskOptions
    model: ModelDefinition
    acl: list[AclRuleDefinition] | None = None

    def to_acl_set(self) -> AclSet | None:
        if self.acl is None:
            return None
        return AclSet(r.to_rule() for r in self.acl)


class EnumDefinition(_Definition):
    """Process-wide enum: key → stored value."""
    name: str = Field(min_length=1)
    values: dict[str, Any]


EnumTable = dict[str, EnumDefinition]


def build_enum_table(definitions: list[EnumDefinition]) -> EnumTable:
    return {d.name: d for d in definitions}
