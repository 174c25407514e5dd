"""
Cadeala Rewards API - Structured Logging
========================================
One JSON object per log line in production, a colored one-liner in
development. Every line carries the request context set by the API
middleware, so the SDK side effects a request causes (user deleted, claims
set, token stored) can be traced back to it.

Usage:
    from cadeala.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("Custom claims set", extra={"uid": uid})

Selection: LOG_FORMAT=json|console, otherwise console when DEBUG is on.
LOG_LEVEL sets the threshold (INFO by default).
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
import traceback
from contextvars import ContextVar
from datetime import date, datetime, timezone
from typing import Any

from cadeala.config import settings

SERVICE_NAME = "cadeala-api"

# Extra fields whose values never reach the log output
REDACTED_FIELDS = frozenset({"token", "private_key", "page_token", "password"})
REDACTED = "***REDACTED***"


# =============================================================================
# Request Context
# =============================================================================


class LogContext:
    """
    Request-scoped fields attached to every log line.

    Backed by context variables: Starlette copies the context into the worker
    thread running a sync route, so what the middleware sets is visible in
    handler and repository logs.
    """

    _vars: dict[str, ContextVar[str | None]] = {
        key: ContextVar(f"cadeala_{key}", default=None)
        for key in ("request_id", "user_id", "client_ip", "endpoint")
    }

    @classmethod
    def set(cls, key: str, value: str | None) -> None:
        cls._vars[key].set(value)

    @classmethod
    def get(cls, key: str) -> str | None:
        var = cls._vars.get(key)
        return None if var is None else var.get()

    @classmethod
    def set_request_id(cls, request_id: str | None) -> None:
        cls.set("request_id", request_id)

    @classmethod
    def get_request_id(cls) -> str | None:
        return cls.get("request_id")

    @classmethod
    def set_user_id(cls, user_id: str | None) -> None:
        cls.set("user_id", user_id)

    @classmethod
    def set_client_ip(cls, client_ip: str | None) -> None:
        cls.set("client_ip", client_ip)

    @classmethod
    def set_endpoint(cls, endpoint: str | None) -> None:
        cls.set("endpoint", endpoint)

    @classmethod
    def clear(cls) -> None:
        for var in cls._vars.values():
            var.set(None)

    @classmethod
    def current(cls) -> dict[str, str]:
        """Fields that are set, without the unset ones."""
        values = {key: var.get() for key, var in cls._vars.items()}
        return {key: value for key, value in values.items() if value is not None}


# =============================================================================
# Formatters
# =============================================================================

# Attributes every LogRecord has; anything else came in through `extra=`
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    fields = {}
    for key, value in vars(record).items():
        if key in _RECORD_ATTRS or key.startswith("_"):
            continue
        fields[key] = REDACTED if key in REDACTED_FIELDS and value else value
    return fields


def _exception_fields(exc_info: Any) -> dict[str, Any]:
    exc_type, exc, tb = exc_info
    return {
        "type": exc_type.__name__ if exc_type else None,
        "message": str(exc) if exc is not None else None,
        "traceback": "".join(traceback.format_exception(exc_type, exc, tb)),
    }


def _json_default(obj: Any) -> str:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    return str(obj)


class StructuredFormatter(logging.Formatter):
    """JSON lines for Cloud Logging and friends."""

    def __init__(self, *, service_name: str = SERVICE_NAME, environment: str = "production") -> None:
        super().__init__()
        self.service_name = service_name
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": created.strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "environment": self.environment,
            "source": f"{record.module}:{record.lineno}",
        }
        entry.update(LogContext.current())
        entry.update(_extra_fields(record))
        if record.exc_info:
            entry["exception"] = _exception_fields(record.exc_info)
        return json.dumps(entry, default=_json_default, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """`LEVEL HH:MM:SS.mmm [request-id] logger: message key=value ...`"""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, "")
        clock = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%H:%M:%S.%f")[:-3]
        request_id = LogContext.get_request_id() or "-"
        line = f"{color}{record.levelname:<8}{self.RESET} {clock} [{request_id}] {record.name}: {record.getMessage()}"

        extra = _extra_fields(record)
        if extra:
            line += " " + " ".join(f"{key}={value}" for key, value in extra.items())
        if record.exc_info:
            line += "\n" + _exception_fields(record.exc_info)["traceback"]
        return line


# =============================================================================
# Setup
# =============================================================================

_configured = False


def _resolve_level(level: str | int | None) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName((level or os.environ.get("LOG_LEVEL") or "INFO").upper())
    return value if isinstance(value, int) else logging.INFO


def _use_json(log_format: str | None) -> bool:
    log_format = (log_format or os.environ.get("LOG_FORMAT") or "").lower()
    if log_format in ("json", "console"):
        return log_format == "json"
    return not settings.debug_mode


def configure_logging(
    *,
    level: str | int | None = None,
    log_format: str | None = None,
    environment: str = "production",
) -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: threshold, LOG_LEVEL when omitted
        log_format: "json" or "console", LOG_FORMAT / debug mode when omitted
        environment: label written into JSON lines
    """
    global _configured

    resolved = _resolve_level(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(resolved)
    handler.setFormatter(StructuredFormatter(environment=environment) if _use_json(log_format) else ConsoleFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(resolved)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Named logger; configures the root handler on first call."""
    if not _configured:
        configure_logging()
    return logging.getLogger(name)


def log_error(event_name: str, exc: BaseException | None = None, **fields: Any) -> None:
    """Log `event_name` at ERROR with the exception's traceback attached."""
    exc_info = (type(exc), exc, exc.__traceback__) if exc is not None else None
    get_logger("cadeala.errors").error(event_name, exc_info=exc_info, extra=fields)


# =============================================================================
# Timing
# =============================================================================


class PerformanceTracker:
    """
    Time a block and log `<operation>_completed` (or `_failed`) with
    `duration_ms` and any extra fields.

        with PerformanceTracker("transactions_scan", customers=12):
            ...
    """

    logger_name = "performance"

    def __init__(self, operation: str, **fields: Any) -> None:
        self.operation = operation
        self.fields = fields
        self._started = 0.0

    def __enter__(self) -> PerformanceTracker:
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        fields = {**self.fields, "duration_ms": round((time.perf_counter() - self._started) * 1000, 2)}
        logger = get_logger(self.logger_name)
        if exc_type is None:
            logger.info(f"{self.operation}_completed", extra=fields)
        else:
            fields["error"] = str(exc)
            logger.warning(f"{self.operation}_failed", extra=fields)
