# vidtube/core/errors.py
import logging
from typing import Any, List, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    """Base error of the API. Rendered as {statusCode, message, success, errors}."""

    status_code_default: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message_default: str = "Something went wrong"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Any]] = None, headers: Optional[dict] = None):
        self.message = message or self.message_default
        self.errors = errors or []
        super().__init__(status_code=self.status_code_default, detail=self.message, headers=headers)


class InvalidArgument(ApiError):
    status_code_default = status.HTTP_400_BAD_REQUEST
    message_default = "Invalid argument"


class Unauthorized(ApiError):
    status_code_default = status.HTTP_401_UNAUTHORIZED
    message_default = "Unauthorized request"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Any]] = None):
        super().__init__(message, errors, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(ApiError):
    status_code_default = status.HTTP_403_FORBIDDEN
    message_default = "Forbidden"


class NotFound(ApiError):
    status_code_default = status.HTTP_404_NOT_FOUND
    message_default = "Not found"


class Conflict(ApiError):
    status_code_default = status.HTTP_409_CONFLICT
    message_default = "Already exists"


class Internal(ApiError):
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    message_default = "Internal server error"


class UpstreamFailure(ApiError):
    status_code_default = status.HTTP_502_BAD_GATEWAY
    message_default = "Upstream service failure"


def error_body(status_code: int, message: str, errors: Optional[List[Any]] = None) -> dict:
    return {
        "statusCode": status_code,
        "message": message,
        "success": False,
        "errors": errors or [],
    }


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    errors = getattr(exc, "errors", [])
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed with {exc.status_code}: {message}")
    else:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, message, errors),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} -> validation error")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(status.HTTP_400_BAD_REQUEST, "Invalid request", jsonable_encoder(exc.errors())),
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
