import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base exception for business rule violations."""

    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, Any]]] = None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)


class ValidationError(AppError):
    """Raised when input data is invalid or violates domain rules."""

    status_code = 400
    default_message = "Validation failed"

    @classmethod
    def for_field(cls, field: str, message: str, value: Any = None) -> "ValidationError":
        return cls(message, errors=[{"field": field, "msg": message, "value": value}])


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"


class ForbiddenError(AppError):
    """Raised when the actor's role or ownership does not allow the action."""

    status_code = 403
    default_message = "Access denied"


class ConflictError(AppError):
    # Surfaced as a 400 with a message, like other rejected input
    status_code = 400
    default_message = "Resource already exists"


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Could not validate credentials"


class UnhandledError(AppError):
    status_code = 500
    default_message = "Server error"


class ReportRenderError(UnhandledError):
    default_message = "Server error while generating report"


def error_body(message: str, errors: Optional[List[Dict[str, Any]]] = None) -> dict:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body


async def app_error_handler(request: Request, exc: AppError):
    if isinstance(exc, UnhandledError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc.__cause__ or exc)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(error_body(exc.message, exc.errors)))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")),
            "msg": err.get("msg"),
            "location": err.get("loc", ("",))[0],
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content=jsonable_encoder(error_body("Validation failed", errors)))


async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=error_body("Server error"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
