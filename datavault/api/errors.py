"""Domain error to HTTP response mapping."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from datavault.errors import (
    DataInactive,
    DataVaultError,
    InvalidTransition,
    NotFound,
    StoreUnavailable,
    ValidationFailed,
)
from datavault.utils.logger import setup_logger

logger = setup_logger("api.errors")

RETRY_AFTER_SECONDS = 5

_STATUS_CODES: dict[type[DataVaultError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidTransition: status.HTTP_409_CONFLICT,
    DataInactive: status.HTTP_409_CONFLICT,
    ValidationFailed: status.HTTP_422_UNPROCESSABLE_ENTITY,
    StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_code_for(exc: DataVaultError) -> int:
    """HTTP status for a domain error, 500 when unmapped."""
    for cls in type(exc).__mro__:
        if cls in _STATUS_CODES:
            return _STATUS_CODES[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_domain_error(request: Request, exc: DataVaultError) -> JSONResponse:
    """Render a domain error with its public message only."""
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.__class__.__name__}")

    content: dict = {"detail": exc.message}
    if isinstance(exc, ValidationFailed) and exc.errors:
        content["errors"] = exc.errors
    headers = {"Retry-After": str(RETRY_AFTER_SECONDS)} if exc.retryable else None
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain error handler on an application.

    Args:
        app: FastAPI application instance.
    """
    app.add_exception_handler(DataVaultError, handle_domain_error)
