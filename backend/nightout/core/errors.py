"""
Application error types and the JSON error envelope.

Every error leaves the API as:
    {"success": false, "error": {"code": ..., "message": ..., "details": {...}}}
"""

from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from nightout.core.config import get_settings
from nightout.core.logging import get_logger

logger = get_logger(__name__)


class ErrorCode:
    # Auth
    INVALID_CREDENTIALS = "AUTH_001"
    TOKEN_EXPIRED = "AUTH_002"
    TOKEN_INVALID = "AUTH_003"
    ACCOUNT_LOCKED = "AUTH_004"
    EMAIL_EXISTS = "AUTH_005"
    USERNAME_EXISTS = "AUTH_006"

    # Users
    USER_NOT_FOUND = "USER_001"
    INVALID_PASSWORD = "USER_002"

    # Events
    EVENT_NOT_FOUND = "EVENT_001"

    # Social
    ALREADY_FRIENDS = "SOCIAL_001"
    REQUEST_EXISTS = "SOCIAL_002"
    USER_BLOCKED = "SOCIAL_003"
    CANNOT_FRIEND_SELF = "SOCIAL_004"

    # Invites
    SELF_INVITE = "SELF_INVITE"
    INVITE_EXISTS = "INVITE_EXISTS"

    # General
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_001"
    RATE_LIMITED = "RATE_001"
    SERVER_ERROR = "SERVER_001"


# Resources with a dedicated code; everything else gets <RESOURCE>_NOT_FOUND
_NOT_FOUND_CODES = {
    "User": ErrorCode.USER_NOT_FOUND,
    "Event": ErrorCode.EVENT_NOT_FOUND,
}


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = ErrorCode.SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, list[str]]] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details
        self.headers = headers


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = ErrorCode.VALIDATION_ERROR


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = ErrorCode.TOKEN_INVALID

    def __init__(self, message: str = "Authentication required", code: Optional[str] = None):
        super().__init__(message, code=code, headers={"WWW-Authenticate": "Bearer"})


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = ErrorCode.FORBIDDEN

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "Resource"):
        code = _NOT_FOUND_CODES.get(
            resource, f"{resource.upper().replace(' ', '_')}_NOT_FOUND"
        )
        super().__init__(f"{resource} not found", code=code)


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str, code: str):
        super().__init__(message, code=code)


class RateLimitError(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = ErrorCode.RATE_LIMITED

    def __init__(self, message: str = "Too many requests", retry_after: Optional[int] = None):
        headers = {"Retry-After": str(retry_after)} if retry_after else None
        super().__init__(message, headers=headers)


def error_body(code: str, message: str, details: Optional[dict] = None) -> dict:
    error: dict = {"code": code, "message": message}
    if details:
        error["details"] = details
    return {"success": False, "error": error}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("app_error", code=exc.code, error=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.code, exc.message, exc.details),
        headers=exc.headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details: dict[str, list[str]] = {}
    for err in exc.errors():
        # drop the leading "body"/"query"/"path" location segment
        loc = [str(part) for part in err.get("loc", ())[1:]] or ["request"]
        details.setdefault(".".join(loc), []).append(err.get("msg", "Invalid value"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(ErrorCode.VALIDATION_ERROR, "Validation failed", details),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        code, message = ErrorCode.NOT_FOUND, "Endpoint not found"
    elif exc.status_code == status.HTTP_401_UNAUTHORIZED:
        code, message = ErrorCode.TOKEN_INVALID, str(exc.detail)
    elif exc.status_code == status.HTTP_403_FORBIDDEN:
        code, message = ErrorCode.FORBIDDEN, str(exc.detail)
    else:
        code, message = ErrorCode.SERVER_ERROR, str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(code, message),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", error=str(exc))
    message = "Internal server error" if get_settings().is_production else str(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(ErrorCode.SERVER_ERROR, message),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
