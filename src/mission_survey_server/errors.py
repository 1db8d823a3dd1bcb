"""Global exception handlers: map SDK exceptions to HTTP status codes.

The SDK raises ``ValueError`` subclasses for bad requests (illegal
transition, malformed answer, unknown session).  The handlers inspect the
message and pick the status code, so routes stay on the happy path.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

# Keyword in the ValueError message -> (status, client-safe message).
# Checked in order; first match wins.
_VALUE_ERROR_PATTERNS: list[tuple[str, int, str]] = [
    ("already exists", 409, "Resource already exists"),
    ("not found", 404, "Resource not found"),
    # Illegal transition for the current view, or a submit in flight
    ("cannot", 409, "Request conflicts with the current survey state"),
]


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Map a ``ValueError`` to 404 / 409 / 400 by its message.

    The raw message is logged server-side only; it may carry internal ids.
    """
    msg = str(exc)
    status, safe_detail = 400, "Invalid request"
    lowered = msg.lower()
    for pattern, code, detail in _VALUE_ERROR_PATTERNS:
        if pattern in lowered:
            status, safe_detail = code, detail
            break

    logger.warning("ValueError [%d] at %s: %s", status, request.url, msg)
    return JSONResponse(status_code=status, content={"detail": safe_detail})


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    logger.warning("KeyError at %s: %s", request.url, exc)
    return JSONResponse(status_code=404, content={"detail": "Resource not found"})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all: log the traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
