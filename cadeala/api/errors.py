"""
Error envelopes and handler-boundary helpers.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cadeala.api.observability import generate_request_id, get_request_id
from cadeala.exceptions import (
    CadealaError,
    OperationFailedError,
    ValidationError,
    exception_to_http_status,
    handle_exception,
)
from cadeala.logging_config import log_error

# Request locations FastAPI prefixes onto validation error paths
_LOCATIONS = frozenset({"body", "query", "path", "header", "cookie"})


@contextmanager
def failure_message(message: str) -> Iterator[None]:
    """
    Turn unexpected failures inside a handler into a 500 with `message`.

    Project errors (validation, not found) pass through unchanged.
    """
    try:
        yield
    except CadealaError:
        raise
    except Exception as exc:
        log_error("handler_failed", exc, summary=message)
        raise OperationFailedError(message, cause=exc) from exc


def validation_issues(exc: RequestValidationError) -> list[dict[str, Any]]:
    issues = []
    for err in exc.errors():
        loc = list(err.get("loc", ()))
        if loc and loc[0] in _LOCATIONS:
            loc = loc[1:]
        issues.append({"path": loc, "message": err.get("msg", "Invalid value"), "code": err.get("type", "invalid")})
    return issues


def error_headers(request: Request) -> dict[str, str]:
    # Clients always get a request id for correlation, even on errors
    rid = request.headers.get("x-request-id") or get_request_id() or generate_request_id()
    return {"X-Request-ID": rid, "Cache-Control": "no-store"}


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CadealaError)
    def _cadeala_error(request: Request, exc: CadealaError) -> JSONResponse:
        headers = error_headers(request)
        status = exception_to_http_status(exc)
        exc.request_id = headers["X-Request-ID"]
        if status >= 500:
            exc.log()
        return JSONResponse(status_code=status, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        err = ValidationError(issues=validation_issues(exc))
        return JSONResponse(status_code=400, content=err.to_dict(), headers=error_headers(request))

    @app.exception_handler(Exception)
    def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        headers = error_headers(request)
        return JSONResponse(
            status_code=500,
            content=handle_exception(exc, request_id=headers["X-Request-ID"]),
            headers=headers,
        )
