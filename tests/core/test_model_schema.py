"""Model Schema tests — element classification and load-time validation.

Tests cover:
    - Classification: relation, owner, state, filterable, sortable elements
    - read_fields vs input_fields ceilings (input=False only removes write access)
    - Relations stay out of the input ceiling even without input=False
    - Owner elements without a join field are rejected
    - Duplicate fields / relation+filterable rejected with ConfigurationError
"""

import pytest

from workflow_model.core.errors import ConfigurationError
from workflow_model.core.model_schema import Element, build_model_schema


def _schema():
    return build_model_schema([
        Element("title", listing_sortable=True),
        Element("status", input=False, is_state_field=True, listing_filterable=True),
        Element("owner", input=False, is_relation=True, is_owner_field=True, join_field="owner_id"),
        Element("owner_id", input=False, listing_filterable=True),
        Element("tags", listing_filterable=True, listing_filter_multiple=True),
    ], input_enabled=True)


# -- Classification -------------------------------------------------------------

def test_classifies_elements_in_declaration_order():
    schema = _schema()
    assert schema.relation_field_names == ["owner"]
    assert schema.owner_join_fields == ["owner_id"]
    assert schema.state_field_names == ["status"]
    assert [e.field for e in schema.listing_filter_fields] == ["status", "owner_id", "tags"]
    assert [e.field for e in schema.listing_sortable_fields] == ["title"]
    assert schema.input_enabled is True


def test_read_ceiling_includes_every_field():
    schema = _schema()
    assert list(schema.read_fields) == ["title", "status", "owner", "owner_id", "tags"]


def test_input_ceiling_excludes_input_false():
    schema = _schema()
    assert set(schema.input_fields) == {"title", "tags"}


def test_input_ceiling_excludes_relations():
    schema = build_model_schema([
        Element("title"),
        Element("owner", is_relation=True, is_owner_field=True, join_field="owner_id"),
        Element("owner_id", input=False),
    ], input_enabled=True)
    assert set(schema.input_fields) == {"title"}
    assert "owner" in schema.read_fields


def test_element_lookup():
    schema = _schema()
    assert schema.element("owner").join_field == "owner_id"
    assert schema.element("missing") is None


def test_ceilings_are_read_only():
    schema = _schema()
    with pytest.raises(TypeError):
        schema.read_fields["extra"] = Element("extra")


def test_input_defaults_to_disabled():
    schema = build_model_schema([Element("title")])
    assert schema.input_enabled is False


# -- Validation -----------------------------------------------------------------

def test_duplicate_field_rejected():
    with pytest.raises(ConfigurationError, match="Duplicate field"):
        build_model_schema([Element("title"), Element("title")])


def test_relation_cannot_be_listing_filterable():
    with pytest.raises(ConfigurationError, match="relation"):
        build_model_schema([Element("owner", is_relation=True, listing_filterable=True)])


def test_owner_field_requires_join_field():
    with pytest.raises(ConfigurationError, match="join field"):
        build_model_schema([Element("owner", is_owner_field=True)])
