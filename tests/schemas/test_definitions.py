"""Definition Schemas tests — JSON definitions into frozen core types.

Tests cover:
    - camelCase aliases on elements, options and ACL rules
    - input defaults to True on elements, False on models
    - Unknown targets / actions / restrictions rejected at load time
    - Empty restrictions mean "unrestricted"; absent acl means no policy
    - The shipped submission definition and enum table load cleanly
"""

import pytest
from pydantic import ValidationError

from workflow_model.schemas.definitions import (
    AclRuleDefinition, ElementDefinition, EnumDefinition, TaskDefinition, build_enum_table,
)
from workflow_model.services.entity_registry import (
    DEFAULT_DEFINITIONS_DIR, load_enum_table, load_task_definitions,
)


def _definition(**overrides):
    raw = {
        "name": "ticket",
        "options": {"processKey": "ticket-process"},
        "model": {
            "input": True,
            "elements": [
                {"field": "title"},
                {"field": "owner", "isRelation": True, "isOwnerField": True,
                 "joinField": "owner_id", "input": False},
            ],
        },
    }
    raw.update(overrides)
    return TaskDefinition.model_validate(raw)


# -- Elements -------------------------------------------------------------------

def test_element_aliases():
    element = ElementDefinition.model_validate({
        "field": "status", "isStateField": True, "listingFilterable": True,
        "listingFilterMultiple": True, "listingSortable": True,
        "defaultEnum": "Status", "defaultEnumKey": "Draft",
    }).to_element()
    assert element.is_state_field is True
    assert element.listing_filter_multiple is True
    assert element.default_enum == "Status"
    assert element.default_enum_key == "Draft"
    assert element.input is True


def test_element_requires_field_name():
    with pytest.raises(ValidationError):
        ElementDefinition.model_validate({"field": ""})


def test_model_input_defaults_to_false():
    definition = _definition(model={"elements": [{"field": "title"}]})
    assert definition.model.to_schema().input_enabled is False


def test_task_definition_to_schema():
    schema = _definition().model.to_schema()
    assert schema.owner_join_fields == ["owner_id"]
    assert set(schema.input_fields) == {"title"}
    assert _definition().options.process_key == "ticket-process"


# -- ACL rules ------------------------------------------------------------------

def test_acl_rule_conversion():
    rule = AclRuleDefinition.model_validate({
        "targets": ["owner"], "actions": ["write"],
        "allowedFields": ["title"], "conditions": {"status": ["draft"]},
        "tasks": [], "description": "owners edit drafts",
    }).to_rule()
    assert rule.allowed_fields == {"title"}
    assert rule.conditions == {"status": ("draft",)}
    assert rule.allowed_tasks == frozenset()
    assert rule.allowed_restrictions is None
    assert rule.description() == "owners edit drafts"


def test_empty_restrictions_are_unrestricted():
    rule = AclRuleDefinition.model_validate({
        "targets": ["user"], "actions": ["access"], "restrictions": [],
    }).to_rule()
    assert rule.allowed_restrictions is None


@pytest.mark.parametrize("raw", [
    {"targets": ["everyone"], "actions": ["read"]},
    {"targets": ["user"], "actions": ["publish"]},
    {"targets": ["user"], "actions": ["read"], "restrictions": ["team"]},
    {"targets": [], "actions": ["read"]},
])
def test_invalid_acl_rules_rejected(raw):
    with pytest.raises(ValidationError):
        AclRuleDefinition.model_validate(raw)


def test_absent_acl_means_no_policy():
    assert _definition().to_acl_set() is None
    acl = _definition(acl=[{"targets": ["user"], "actions": ["read"]}]).to_acl_set()
    assert len(acl.rules) == 1


# -- Enums & shipped definitions ------------------------------------------------

def test_build_enum_table():
    table = build_enum_table([EnumDefinition(name="Color", values={"Red": "red"})])
    assert table["Color"].values["Red"] == "red"


def test_shipped_definitions_load():
    definitions = load_task_definitions(DEFAULT_DEFINITIONS_DIR)
    assert [d.name for d in definitions] == ["submission"]
    submission = definitions[0]
    assert submission.options.process_key == "submission-workflow"
    assert submission.model.to_schema().state_field_names == ["phase"]


def test_shipped_enum_table_loads():
    enums = load_enum_table(DEFAULT_DEFINITIONS_DIR)
    assert enums["SubmissionPhase"].values["Draft"] == "draft"


def test_missing_enum_file_gives_empty_table(tmp_path):
    assert load_enum_table(tmp_path) == {}
