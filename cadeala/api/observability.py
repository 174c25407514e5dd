"""
Request tracing for the API.

Every request gets an id (the caller's X-Request-ID or a fresh UUID4) that
is echoed on the response and attached to each log line written while the
request runs, including the SDK side effects it triggers.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from typing import Any
from urllib.parse import parse_qsl, urlencode

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from cadeala.api.middleware import get_client_ip
from cadeala.exceptions import CadealaError
from cadeala.logging_config import REDACTED, LogContext, get_logger

logger = get_logger(__name__)

# Query parameters that carry credentials or device tokens
SENSITIVE_PARAMS = frozenset({"token", "pagetoken", "password", "secret", "api_key"})

# Admin routes addressing one account: /api/users/{uid}
_USER_PATH_PREFIX = "/api/users/"


def generate_request_id() -> str:
    return str(uuid.uuid4())


def get_request_id() -> str | None:
    """Id of the request being handled, if any."""
    return LogContext.get_request_id()


def sanitize_query_params(query: str) -> str:
    """Query string with sensitive values replaced, safe to log."""
    pairs = parse_qsl(query, keep_blank_values=True)
    return urlencode(
        [(key, REDACTED if key.lower() in SENSITIVE_PARAMS else value) for key, value in pairs],
        safe="*",
    )


def _target_uid(path: str) -> str | None:
    if path.startswith(_USER_PATH_PREFIX):
        return path[len(_USER_PATH_PREFIX):].split("/", 1)[0] or None
    return None


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """
    Logs request_started, then request_completed (request_completed_slow
    past the threshold) or request_failed, each with duration_ms.
    """

    def __init__(self, app: ASGIApp, *, slow_request_threshold_ms: float = 1000.0) -> None:
        super().__init__(app)
        self.slow_request_threshold_ms = slow_request_threshold_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        request_id = request.headers.get("x-request-id") or generate_request_id()
        request.state.request_id = request_id

        LogContext.clear()
        LogContext.set_request_id(request_id)
        LogContext.set_client_ip(get_client_ip(request))
        LogContext.set_endpoint(path)
        # The account an admin action targets, for user routes
        LogContext.set_user_id(_target_uid(path))

        fields: dict[str, Any] = {"method": request.method, "path": path}
        started_fields = {**fields, "user_agent": request.headers.get("user-agent")}
        if request.url.query:
            started_fields["query_params"] = sanitize_query_params(request.url.query)
        logger.info("request_started", extra=started_fields)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            fields.update(
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
            if isinstance(exc, CadealaError):
                fields["error_code"] = exc.error_code
            logger.error("request_failed", extra=fields, exc_info=True)
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = request_id
        fields.update(status_code=response.status_code, duration_ms=round(duration_ms, 2))
        result_count = getattr(request.state, "result_count", None)
        if result_count is not None:
            fields["result_count"] = result_count

        if duration_ms >= self.slow_request_threshold_ms:
            logger.warning("request_completed_slow", extra={**fields, "slow_request": True})
        else:
            logger.info("request_completed", extra=fields)
        return response
