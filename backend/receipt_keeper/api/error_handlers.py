"""
Custom exception handlers for FastAPI.
Every error leaves the API in the same envelope as successful responses:
``{"success": false, "error": "<message>"}``.
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import HTTP_422_UNPROCESSABLE_ENTITY, HTTP_500_INTERNAL_SERVER_ERROR

from receipt_keeper.core.exceptions import ReceiptKeeperError
from receipt_keeper.core.observability import capture_exception

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "internal server error"


def error_response(status_code: int, error: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error}, headers=headers)


def _format_validation_errors(errors) -> str:
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return ", ".join(parts) or "validation error"


def domain_exception_handler(request: Request, exc: ReceiptKeeperError):
    if exc.status_code >= 500:
        # Store errors carry SQL details; keep them out of the response
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        capture_exception(exc)
        return error_response(exc.status_code, INTERNAL_ERROR)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return error_response(exc.status_code, exc.message, headers=headers)


def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(HTTP_422_UNPROCESSABLE_ENTITY, _format_validation_errors(exc.errors()))


def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


def generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    capture_exception(exc)
    return error_response(HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR)
