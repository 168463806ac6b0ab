"""List Query tests — filter, ordering and owner constraint construction.

Tests cover:
    - Only filterable fields become filters; None values skipped
    - Multi-valued filters require arrays; non-arrays dropped
    - Lists or objects on single-valued filters raise UserInputError
    - Ordering: strictly boolean values only, schema order
    - Owner constraint only when the schema declares owner fields
"""

import pytest

from workflow_model.core.errors import UserInputError
from workflow_model.core.list_query import (
    FieldFilter, Ordering, OwnerConstraint, build_list_query,
)
from workflow_model.core.model_schema import Element, build_model_schema


def _schema(with_owner=True):
    elements = [
        Element("title", listing_sortable=True),
        Element("status", listing_filterable=True, listing_filter_multiple=True),
        Element("owner_id", listing_filterable=True, listing_sortable=True),
        Element("notes"),
    ]
    if with_owner:
        elements.append(Element(
            "owner", is_relation=True, is_owner_field=True, join_field="owner_id",
        ))
    return build_model_schema(elements)


# -- Filters --------------------------------------------------------------------

def test_filters_only_for_filterable_fields():
    query = build_list_query(_schema(), {"owner_id": "alice", "notes": "x", "unknown": 1}, None)
    assert query.filters == [FieldFilter("owner_id", "alice")]


def test_none_filter_values_skipped():
    query = build_list_query(_schema(), {"owner_id": None}, None)
    assert query.filters == []


def test_multiple_filter_requires_array():
    query = build_list_query(_schema(), {"status": ["draft", "submitted"]}, None)
    assert query.filters == [FieldFilter("status", ["draft", "submitted"], multiple=True)]

    query = build_list_query(_schema(), {"status": "draft"}, None)
    assert query.filters == []


@pytest.mark.parametrize("value", [["alice"], ("alice", "bob"), {"eq": "alice"}])
def test_single_value_filter_rejects_collections(value):
    with pytest.raises(UserInputError, match="owner_id"):
        build_list_query(_schema(), {"owner_id": value}, None)


def test_multiple_filter_rejects_nested_values():
    with pytest.raises(UserInputError, match="status"):
        build_list_query(_schema(), {"status": ["draft", ["submitted"]]}, None)


# -- Ordering -------------------------------------------------------------------

def test_ordering_follows_schema_order():
    query = build_list_query(_schema(), None, {"owner_id": False, "title": True})
    assert query.ordering == [Ordering("title", descending=True), Ordering("owner_id")]


def test_non_boolean_sort_values_dropped():
    query = build_list_query(_schema(), None, {"title": "desc", "owner_id": 1, "notes": True})
    assert query.ordering == []


# -- Owner constraint -----------------------------------------------------------

def test_owner_constraint_uses_join_fields():
    query = build_list_query(_schema(), None, None, owner_user_id="alice")
    assert query.owner_constraint == OwnerConstraint(("owner_id",), "alice")


def test_no_owner_constraint_without_owner_fields():
    query = build_list_query(_schema(with_owner=False), None, None, owner_user_id="alice")
    assert query.owner_constraint is None


def test_eager_relations_carried():
    query = build_list_query(_schema(), None, None, eager=("owner",))
    assert query.eager == ("owner",)
