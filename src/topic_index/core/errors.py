"""
Global Error Handling

This module maps the engine's error taxonomy onto HTTP responses for the
FastAPI surface.

Design Goals
------------
- Never leak internal exception details to clients
- Always return deterministic, machine-readable error responses
- Report every validation violation so callers can fix records in one pass
- Log full stack traces internally for unexpected failures
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..exceptions import (
    InvalidQueryError,
    NotFoundError,
    RebuildCancelledError,
    SourceError,
    TopicIndexError,
    ValidationError,
)

logger = logging.getLogger("topic_index.errors")


# ---------------------------------------------------------------------
# Status Mapping
# ---------------------------------------------------------------------

_STATUS: Dict[type, tuple] = {
    ValidationError: (422, "validation_error"),
    NotFoundError: (404, "not_found"),
    InvalidQueryError: (400, "invalid_query"),
    RebuildCancelledError: (409, "rebuild_cancelled"),
    SourceError: (400, "source_error"),
}


def _classify(exc: TopicIndexError) -> tuple:
    for exc_type, mapped in _STATUS.items():
        if isinstance(exc, exc_type):
            return mapped
    return 500, "internal_error"


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def topic_index_error_handler(
    request: Request,
    exc: TopicIndexError,
) -> JSONResponse:
    """
    Translate an engine error into a JSON error response.

    Known caller errors carry their message; ``InternalError`` and any
    unmapped engine error are reported as a generic 500.
    """
    status_code, error = _classify(exc)

    if status_code >= 500:
        logger.exception(
            "Engine failure during request: %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        payload: Dict[str, Any] = {
            "error": error,
            "detail": "Internal server error",
        }
    else:
        payload = {"error": error, "detail": str(exc)}

    if isinstance(exc, ValidationError):
        payload["violations"] = exc.as_list()

    return JSONResponse(status_code=status_code, content=payload)


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    Logs the full traceback and returns a minimal 500 payload.
    """
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    payload: Dict[str, Any] = {
        "error": "internal_server_error",
        "detail": "Internal server error",
    }

    return JSONResponse(
        status_code=500,
        content=payload,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TopicIndexError, topic_index_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
