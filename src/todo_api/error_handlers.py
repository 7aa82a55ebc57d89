"""
Error translation for the todo API.

Every failure a route can raise is mapped here to a status code and a JSON
body of the form ``{"error": ...}``. Unrecognized failures become a 500
without exposing internals.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import AuthenticationRequired, TodoApiError, ValidationFailed

logger = logging.getLogger(__name__)

ErrorDescriptor = Tuple[int, Dict[str, Any]]


def _request_validation_details(exc: RequestValidationError) -> List[Dict[str, str]]:
    details: List[Dict[str, str]] = []
    for issue in exc.errors():
        location = [str(part) for part in issue.get("loc", ()) if part != "body"]
        details.append(
            {
                "field": ".".join(location) if location else "request",
                "issue": str(issue.get("msg", "Invalid value")),
            }
        )
    return details


# PUBLIC_INTERFACE
def translate_error(exc: Exception) -> ErrorDescriptor:
    """
    Map any exception raised while handling a request to (status, body).

    Total over all exceptions: anything not recognized maps to 500.
    """
    if isinstance(exc, ValidationFailed):
        return exc.status_code, {"error": exc.message, "detail": exc.details}
    if isinstance(exc, TodoApiError):
        return exc.status_code, {"error": exc.message}
    if isinstance(exc, RequestValidationError):
        return 422, {
            "error": "Request validation failed",
            "detail": _request_validation_details(exc),
        }
    if isinstance(exc, StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) and exc.detail else "Request failed"
        return exc.status_code, {"error": message}
    return status.HTTP_500_INTERNAL_SERVER_ERROR, {"error": "Internal server error"}


def _headers_for(exc: Exception) -> Optional[Dict[str, str]]:
    if isinstance(exc, AuthenticationRequired):
        return {"WWW-Authenticate": "Bearer"}
    if isinstance(exc, StarletteHTTPException):
        return getattr(exc, "headers", None)
    return None


def _log(request: Request, exc: Exception, status_code: int) -> None:
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        # The server logs the traceback when the exception is re-raised after the response
        logger.error(
            "Unhandled %s on %s %s", type(exc).__name__, request.method, request.url.path
        )
    else:
        logger.warning(
            "%s %s -> %d (%s)", request.method, request.url.path, status_code, type(exc).__name__
        )


async def handle_error(request: Request, exc: Exception) -> JSONResponse:
    """Single exception handler: classify, log, and write the response."""
    status_code, body = translate_error(exc)
    _log(request, exc, status_code)
    return JSONResponse(status_code=status_code, content=body, headers=_headers_for(exc))


# PUBLIC_INTERFACE
def register_error_handlers(app: FastAPI) -> None:
    """Route every failure raised by the app through ``translate_error``."""
    app.add_exception_handler(TodoApiError, handle_error)
    app.add_exception_handler(RequestValidationError, handle_error)
    app.add_exception_handler(StarletteHTTPException, handle_error)
    app.add_exception_handler(Exception, handle_error)
