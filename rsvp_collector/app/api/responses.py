"""
JSON response class and exception handlers.

Every JSON body is sent as ``application/json; charset=utf-8`` and every
error body has the shape ``{"message": "..."}``.  Internal details such
as tracebacks or driver errors are logged, never returned.
"""

import logging
from http import HTTPStatus

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# Replacements for the framework's default reason phrases.
_DEFAULT_MESSAGES = {
    404: "Not found.",
    405: "Method not allowed.",
}


class UTF8JSONResponse(JSONResponse):
    media_type = "application/json; charset=utf-8"


def error_response(status_code: int, message: str, headers=None) -> UTF8JSONResponse:
    return UTF8JSONResponse({"message": message}, status_code=status_code, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> UTF8JSONResponse:
    """Render ``HTTPException`` (ours and the framework's) as ``{"message": ...}``."""
    message = exc.detail
    if exc.status_code in _DEFAULT_MESSAGES and message == HTTPStatus(exc.status_code).phrase:
        message = _DEFAULT_MESSAGES[exc.status_code]
    return error_response(exc.status_code, str(message), headers=getattr(exc, "headers", None))


async def unhandled_exception_handler(request: Request, exc: Exception) -> UTF8JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "Internal server error.")
