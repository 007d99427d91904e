"""
Response envelope and API errors.

Every endpoint answers with the same JSON shape:

    success: {"statusCode", "data", "message", "success": true}
    failure: {"statusCode", "message", "success": false, "errors"}
"""

from datetime import datetime
from typing import Any, List, Optional

from bson import ObjectId
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

# Stripped from every stored document (a dict carrying _id), at any depth
PRIVATE_FIELDS = {"password", "refreshToken"}


class ApiError(Exception):
    def __init__(self, status_code: int, message: str = "Something went wrong", errors: Optional[List[Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


class BadRequestError(ApiError):
    def __init__(self, message: str = "Bad request", errors: Optional[List[Any]] = None):
        super().__init__(400, message, errors)


class UnauthorizedError(ApiError):
    def __init__(self, message: str = "Unauthorized request"):
        super().__init__(401, message)


class ForbiddenError(ApiError):
    def __init__(self, message: str = "You are not authorized to perform this action"):
        super().__init__(403, message)


class NotFoundError(ApiError):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(404, message)


class ConflictError(ApiError):
    def __init__(self, message: str = "Resource already exists"):
        super().__init__(409, message)


def format_errors(errors: List[dict]) -> List[dict]:
    """Trim pydantic error dicts to their JSON safe parts."""
    return [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg"), "type": err.get("type")}
        for err in errors
    ]


def serialize(value: Any) -> Any:
    """Make a Mongo document (or anything nested in one) JSON friendly."""
    if isinstance(value, dict):
        stored = "_id" in value
        out = {}
        for k, v in value.items():
            if stored and k in PRIVATE_FIELDS:
                continue
            out["id" if k == "_id" else k] = serialize(v)
        return out
    if isinstance(value, (list, tuple)):
        return [serialize(v) for v in value]
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def api_response(data: Any = None, message: str = "Success", status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "statusCode": status_code,
            "data": serialize(data if data is not None else {}),
            "message": message,
            "success": status_code < 400,
        },
    )


def error_response(status_code: int, message: str, errors: Optional[List[Any]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "statusCode": status_code,
            "message": message,
            "success": False,
            "errors": errors or [],
        },
    )


# -------------------- Exception handlers --------------------

async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return error_response(exc.status_code, exc.message, exc.errors)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = format_errors(exc.errors())
    logger.warning(f"{request.method} {request.url.path} -> 400: invalid input {errors}")
    return error_response(400, "Invalid request data", errors)


async def database_error_handler(request: Request, exc: PyMongoError):
    logger.exception(f"Database error on {request.method} {request.url.path}: {exc}")
    return error_response(500, "A database error occurred")


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return error_response(500, "Internal server error")


def register_exception_handlers(app) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(PyMongoError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
