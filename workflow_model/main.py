"""Workflow Model API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map WorkflowModelError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, workflow client and entity registry initialized on startup via lifespan
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from workflow_model.api.error_handlers import register_error_handlers
from workflow_model.api.routes import entities, health
from workflow_model.config import get_settings
from workflow_model.infrastructure.database import init_db
from workflow_model.infrastructure.observability import setup_logging
from workflow_model.infrastructure.workflow_client import CamundaClient
from workflow_model.services.entity_registry import build_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    workflow = CamundaClient(
        settings.workflow_engine_url, settings.workflow_engine_timeout_seconds,
    )
    app.state.workflow = workflow
    app.state.registry = build_registry(db.session_factory, workflow, settings)
    logger.info("Workflow Model API started")
    yield
    await workflow.aclose()
    await db.dispose()
    logger.info("Workflow Model API shutting down")


app = FastAPI(
    title="Workflow Model API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(entities.router)

register_error_handlers(app)
