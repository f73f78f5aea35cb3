from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.responses import err

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base for failures raised below the routers and rendered as envelopes."""

    status_code = 400

    def __init__(
        self,
        message: str,
        *,
        error: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error = error
        self.errors = errors
        if status_code is not None:
            self.status_code = status_code


class ValidationFailed(AppError):
    status_code = 400


class AuthenticationFailed(AppError):
    status_code = 401


class PermissionDenied(AppError):
    status_code = 403


class NotFound(AppError):
    status_code = 404


class Conflict(AppError):
    status_code = 409


class DomainError(AppError):
    status_code = 400


def _field_name(loc) -> str:
    # drop the "body"/"query"/"path" prefix
    parts = [str(part) for part in loc[1:]] if len(loc) > 1 else [str(part) for part in loc]
    return ".".join(parts)


def _validation_errors(exc: RequestValidationError) -> List[Dict[str, str]]:
    details = []
    for item in exc.errors():
        message = str(item.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        details.append({"field": _field_name(item.get("loc", ())), "message": message})
    return details


def install_error_handlers(app: FastAPI, *, expose_errors: bool = True) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return err(exc.message, status_code=exc.status_code, error=exc.error, errors=exc.errors)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404 and exc.detail == "Not Found":
            return err(f"Route {request.url.path} not found", status_code=404)
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return err(message, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return err("Validation error", status_code=400, errors=_validation_errors(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error at %s %s", request.method, request.url.path, exc_info=exc)
        return err(
            "Internal server error",
            status_code=500,
            error=str(exc) if expose_errors else None,
        )
