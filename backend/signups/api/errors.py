"""
Maps service errors to HTTP responses.

Every SignupsError carries its own status code; the body always has the
same shape as FastAPI's HTTPException ({"detail": ...}).
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from signups.core.exceptions import SignupsError, Unauthenticated
from signups.core.logging import get_logger

logger = get_logger(__name__)


async def signups_error_handler(request: Request, exc: SignupsError) -> JSONResponse:
    headers = None
    if isinstance(exc, Unauthenticated):
        headers = {"WWW-Authenticate": "Bearer"}

    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("request_error", error=type(exc).__name__, detail=exc.message)
    else:
        logger.info("request_rejected", error=type(exc).__name__, status_code=exc.status_code)

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SignupsError, signups_error_handler)
