"""Structured JSON logging with trace_id support."""
from __future__ import annotations

import contextvars
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

TRACE_HEADER = "X-Trace-ID"

# Context variable for trace_id
trace_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "trace_id", default=""
)

# Module loggers live under this namespace (logging.getLogger(__name__))
_PACKAGE_LOGGER = "src"


class JSONFormatter(logging.Formatter):
    """Custom JSON log formatter.

    Keys passed through ``extra={"context": {...}}`` are merged into the
    entry, so callers can attach row counts or identifiers without
    formatting them into the message.
    """

    def __init__(self, service_name: str = "unknown") -> None:
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service_name": self.service_name,
            "logger": record.name,
            "trace_id": trace_id_var.get(""),
            "message": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if isinstance(context, dict):
            for key, value in context.items():
                log_entry.setdefault(key, value)
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = str(record.exc_info[1])
        return json.dumps(log_entry, default=str)


def setup_logging(service_name: str, level: str = "INFO") -> logging.Logger:
    """Configure structured JSON logging for the service.

    Both the service logger and the package namespace used by module-level
    loggers get the JSON handler.

    Args:
        service_name: Name of the service for log entries.
        level: Log level string (e.g. "INFO", "DEBUG").

    Returns:
        Configured service logger.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = JSONFormatter(service_name=service_name)

    for name in (service_name, _PACKAGE_LOGGER):
        logger = logging.getLogger(name)
        logger.setLevel(log_level)
        # Remove existing handlers
        logger.handlers.clear()
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logging.getLogger(service_name)


class TraceIDMiddleware(BaseHTTPMiddleware):
    """FastAPI middleware that sets a trace_id per request.

    An incoming ``X-Trace-ID`` header is reused; otherwise a fresh UUID is
    generated.
    """

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        request_trace_id = request.headers.get(TRACE_HEADER) or str(uuid.uuid4())
        token = trace_id_var.set(request_trace_id)
        try:
            response = await call_next(request)
        finally:
            trace_id_var.reset(token)
        response.headers[TRACE_HEADER] = request_trace_id
        return response
