"""Error signal and the terminal exception handlers.

Domain code raises ``ApiError`` subclasses with an explicit status and message
at the point of detection; ``register_exception_handlers`` renders them.
"""

from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .logging_config import get_logger

logger = get_logger(__name__)

INTERNAL_ERROR_INFO = "Internal server error."


class ApiError(Exception):
    status_code = 400
    default_info = "Bad request."

    def __init__(self, info: str = None, status_code: int = None, *, msg_body: bool = False):
        self.info = info or self.default_info
        if status_code is not None:
            self.status_code = status_code
        # Product catalogue routes answer with the older ``{"msg": ...}`` body
        self.msg_body = msg_body
        super().__init__(self.info)

    def body(self) -> Dict[str, Any]:
        if self.msg_body:
            return {"msg": self.info}
        return {"error": {"status": self.status_code, "info": self.info}}


class ValidationError(ApiError):
    status_code = 400
    default_info = "Invalid request."


class ConflictError(ApiError):
    status_code = 400
    default_info = "Resource already exists."


class AuthenticationError(ApiError):
    status_code = 401
    default_info = "Unauthenticated."


class AuthorizationError(ApiError):
    status_code = 403
    default_info = "Unauthorised."


class NotFoundError(ApiError):
    status_code = 404
    default_info = "Not found."


def error_body(status_code: int, info: str) -> Dict[str, Any]:
    return {"error": {"status": status_code, "info": info}}


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code in (401, 403):
        logger.warning(
            f"Access denied: {request.method} {request.url.path}",
            extra={'extra_fields': {'status_code': exc.status_code, 'info': exc.info}}
        )
    return JSONResponse(status_code=exc.status_code, content=exc.body())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    # First element names the source (path, query, body)
    location = ".".join(str(part) for part in first.get("loc", ())[1:])
    info = f"Invalid value for `{location}`." if location else "Invalid request."
    return JSONResponse(status_code=400, content=error_body(400, info))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    info = exc.detail if isinstance(exc.detail, str) else "Request failed."
    if exc.status_code == 404 and info == "Not Found":
        info = "Not found."
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, info))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled error: {request.method} {request.url.path}",
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content=error_body(500, INTERNAL_ERROR_INFO))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
