"""Error Handlers — map resolver exceptions and request validation failures to JSON envelopes.

Invariants:
    - Every error body has the shape {"error": {code, message, category, severity, ...}}
    - WorkflowModelError keeps its own http_status; AuthorizationError adds restricted_fields
    - 4xx outcomes are logged at WARNING, 5xx at ERROR
    - Request validation failures are 400 (not FastAPI's 422) with per-field details
    - Unhandled exceptions never leak their message or traceback to the caller
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from workflow_model.core.errors import (
    AuthorizationError, ErrorCategory, ErrorSeverity, WorkflowModelError,
)

logger = logging.getLogger(__name__)


def _envelope(
    code: str,
    message: str,
    category: ErrorCategory,
    severity: ErrorSeverity,
    **details,
) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "category": category.value,
            "severity": severity.value,
            **details,
        }
    }


async def handle_workflow_model_error(request: Request, exc: WorkflowModelError):
    log = logger.warning if exc.http_status < 500 else logger.error
    log(
        f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "entity_type": exc.context.entity_type,
            "instance_id": exc.context.instance_id,
            "action": exc.context.action,
        },
    )
    content = exc.to_response()
    if isinstance(exc, AuthorizationError) and exc.restricted_fields:
        content["error"]["restricted_fields"] = exc.restricted_fields
    return JSONResponse(status_code=exc.http_status, content=content)


async def handle_validation_error(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    logger.warning(
        f"Rejected request body on {request.url.path} ({len(details)} errors)",
        extra={"path": request.url.path, "error_code": "VALIDATION_ERROR"},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_envelope(
            "VALIDATION_ERROR", "Invalid request data",
            ErrorCategory.VALIDATION, ErrorSeverity.ERROR, details=details,
        ),
    )


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
        exc_info=exc,
        extra={"path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_envelope(
            "INTERNAL_ERROR", "An unexpected error occurred",
            ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL,
        ),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WorkflowModelError, handle_workflow_model_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
