"""API test fixtures — ASGI client over the real app with a test registry.

Invariants:
    - The lifespan never runs: registry and workflow engine are placed on app.state directly
    - Requests authenticate through the X-User-Id header only
"""

import httpx
import pytest

from workflow_model.config import Settings
from workflow_model.main import app
from workflow_model.services.entity_registry import build_registry


@pytest.fixture
async def client(session_factory, workflow, identities):
    app.state.registry = build_registry(session_factory, workflow, Settings())
    app.state.workflow = workflow
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    del app.state.registry
    del app.state.workflow
