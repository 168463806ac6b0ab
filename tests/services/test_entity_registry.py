"""Entity Registry tests — definition loading and resolver wiring.

Tests cover:
    - build_registry wires one resolver per shipped definition with settings applied
    - Unknown entity types raise NotFoundError; duplicates raise ConfigurationError
    - Definitions without a bound model class are rejected
"""

import json

import pytest

from workflow_model.config import Settings
from workflow_model.core.errors import ConfigurationError, NotFoundError
from workflow_model.services.entity_registry import EntityRegistry, build_registry


def test_build_registry_from_shipped_definitions(session_factory, workflow):
    settings = Settings(grant_administrator_to_authenticated=True, debug_acl_rules=True)
    registry = build_registry(session_factory, workflow, settings)

    assert registry.names() == ["submission"]
    assert "submission" in registry
    resolver = registry.get("submission")
    assert resolver.process_key == "submission-workflow"
    assert resolver.grant_administrator is True
    assert resolver.debug_acl_rules is True
    assert resolver.resolve_enum("SubmissionPhase", "Draft") == "draft"


def test_unknown_entity_type(session_factory, workflow):
    registry = build_registry(session_factory, workflow, Settings())
    with pytest.raises(NotFoundError):
        registry.get("invoice")


def test_duplicate_registration_rejected(session_factory, workflow):
    resolver = build_registry(session_factory, workflow, Settings()).get("submission")
    registry = EntityRegistry()
    registry.register(resolver)
    with pytest.raises(ConfigurationError, match="registered twice"):
        registry.register(resolver)


def test_definition_without_model_class_rejected(session_factory, workflow, tmp_path):
    (tmp_path / "invoice.json").write_text(json.dumps({
        "name": "invoice",
        "options": {"processKey": "invoice-process"},
        "model": {"elements": [{"field": "title"}]},
    }))
    with pytest.raises(ConfigurationError, match="invoice"):
        build_registry(session_factory, workflow, Settings(definitions_dir=str(tmp_path)))
