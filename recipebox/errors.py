"""API error taxonomy and the handlers that render it as `{"error": ...}`."""

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("recipebox.errors")


class ApiError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid request"


class Unauthenticated(ApiError):
    status_code = 401
    default_message = "Unauthorized"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class InternalError(ApiError):
    status_code = 500


@contextmanager
def db_errors(db: Session, message: str) -> Iterator[None]:
    """Turn persistence failures inside the block into InternalError(message)."""
    try:
        yield
    except SQLAlchemyError:
        logger.exception(message)
        db.rollback()
        raise InternalError(message)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _describe_validation(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "path", "query")]
    err_type = first.get("type", "")

    if err_type == "json_invalid":
        return "Request body must be valid JSON"
    if err_type == "missing" and not loc:
        return "Request body is required"
    if err_type == "value_error":
        return str(first.get("msg", "Invalid request")).removeprefix("Value error, ")
    if loc and first.get("loc", ("",))[0] == "path":
        return "Invalid ID format"
    if loc and (err_type == "missing" or err_type.startswith("string")):
        return f"{loc[-1]} is required and must be a string"
    if loc:
        return f"{'.'.join(loc)}: {first.get('msg', 'invalid value')}"
    return first.get("msg", "Invalid request")


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return error_response(exc.status_code, exc.message)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(400, _describe_validation(exc))


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "Internal server error")


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_handler)
