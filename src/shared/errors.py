"""Custom exception classes and FastAPI exception handlers."""
from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.requests import Request


class AppError(Exception):
    """Base application error."""

    kind: str = "server_error"

    def __init__(self, detail: str, status_code: int = 500) -> None:
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class ExtractionError(AppError):
    """Upstream text holds no parseable JSON document (502)."""

    kind = "extraction_error"

    def __init__(self, detail: str = "No JSON document found in model output") -> None:
        super().__init__(detail=detail, status_code=502)


class UpstreamServiceError(AppError):
    """Text-generation service failed or returned a non-success status (502)."""

    kind = "upstream_error"

    def __init__(
        self,
        detail: str = "Upstream service error",
        upstream_status: int | None = None,
    ) -> None:
        self.upstream_status = upstream_status
        super().__init__(detail=detail, status_code=502)


class PersistenceError(AppError):
    """Atomic hierarchy write failed and was rolled back (500)."""

    kind = "persistence_error"

    def __init__(self, detail: str = "Persistence error") -> None:
        super().__init__(detail=detail, status_code=500)


class ConfigurationError(AppError):
    """Service is missing configuration required for the request (400)."""

    kind = "configuration_error"

    def __init__(self, detail: str = "Configuration error") -> None:
        super().__init__(detail=detail, status_code=400)


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers with a FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.kind, "detail": exc.detail},
        )
