"""Service-layer exceptions and their HTTP translation."""

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError, PyMongoError

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = ""):
        self.message = message or self.default_message
        super().__init__(self.message)


class ClientInputError(ServiceError):
    status_code = 400
    default_message = "Invalid request"


class AuthError(ServiceError):
    status_code = 401
    default_message = "Not authenticated"


class NotFoundError(ServiceError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ServiceError):
    status_code = 409
    default_message = "Conflict"


class UpstreamError(ServiceError):
    status_code = 500
    default_message = "Database operation failed"


# Unique indexes -> message returned when the index rejects a write.
DUPLICATE_MESSAGES = {
    "email": "Email already exists",
    "table_number": "Table number already exists",
    "unique_id": "Menu with this name already exists",
    "unique_food_id": "Food item with the same name already exists in this menu",
    "order_id": "Invoice already exists for this order",
}


def duplicate_key_message(exc: DuplicateKeyError) -> str:
    details: Dict[str, Any] = exc.details or {}
    fields = list((details.get("keyPattern") or details.get("keyValue") or {}).keys())
    if not fields:
        # older servers and mongomock only report the index in errmsg
        text = str(details.get("errmsg") or exc)
        fields = [f for f in DUPLICATE_MESSAGES if f in text]
    for field in fields:
        if field in DUPLICATE_MESSAGES:
            return DUPLICATE_MESSAGES[field]
    return "Record already exists"


def error_body(message: str) -> Dict[str, Any]:
    return {"success": False, "message": message}


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors()[:3]:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "Invalid request body"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        message = _validation_message(exc)
        logger.info("%s %s rejected (400): %s", request.method, request.url.path, message)
        return JSONResponse(status_code=400, content=error_body(message))

    @app.exception_handler(DuplicateKeyError)
    async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
        message = duplicate_key_message(exc)
        logger.info("%s %s rejected (409): %s", request.method, request.url.path, message)
        return JSONResponse(status_code=409, content=error_body(message))

    @app.exception_handler(PyMongoError)
    async def database_error_handler(request: Request, exc: PyMongoError):
        logger.exception("Database error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content=error_body(UpstreamError.default_message))
