"""Field selection tests — selection strings to top-level requested fields."""

from workflow_model.api.field_selection import default_fields, requested_fields
from workflow_model.core.model_schema import Element, build_model_schema


def test_nested_paths_collapse_to_top_level():
    assert requested_fields("title,submitter.email,submitter.id") == ["title", "submitter"]


def test_meta_fields_and_blanks_dropped():
    assert requested_fields(" title , ,__typename,phase") == ["title", "phase"]


def test_absent_selection_uses_default():
    assert requested_fields(None, ["id", "title", "id"]) == ["id", "title"]
    assert requested_fields(None) == []


def test_default_fields_cover_schema():
    schema = build_model_schema([Element("title"), Element("phase", input=False)])
    assert default_fields(schema) == ["id", "created", "updated", "title", "phase"]
