"""Request Context tests — identity memo and first-loader-wins instance cache."""

from types import SimpleNamespace

from workflow_model.core.request_context import RequestContext


def test_remember_user_marks_resolved_even_for_none():
    context = RequestContext(user="nobody")
    assert context.user_resolved is False
    context.remember_user(None)
    assert context.user_resolved is True
    assert context.resolved_user is None


def test_instances_cached_per_entity_type():
    context = RequestContext()
    a = SimpleNamespace(id="1")
    context.add_instances("submission", [a])
    assert context.cached_instance("submission", "1") is a
    assert context.cached_instance("review", "1") is None
    assert context.cached_instance("submission", "2") is None


def test_first_loader_wins():
    context = RequestContext()
    first, second = SimpleNamespace(id="1"), SimpleNamespace(id="1")
    context.add_instances("submission", [first])
    context.add_instances("submission", [second])
    assert context.cached_instance("submission", "1") is first


def test_instances_without_id_ignored():
    context = RequestContext()
    context.add_instances("submission", [SimpleNamespace(id=None)])
    assert context.lookup_for("submission") == {}
