from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fintrack.errors import (
    AuthorizationError,
    ConsistencyError,
    FinanceError,
    NotFoundError,
    ValidationError,
)
from fintrack.logger import get_logger

logger = get_logger(__name__)

_STATUS_CODES: tuple[tuple[type[FinanceError], int], ...] = (
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConsistencyError, 503),
)


def status_for(exc: FinanceError) -> int:
    for error_cls, status_code in _STATUS_CODES:
        if isinstance(exc, error_cls):
            return status_code
    return 500


async def finance_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code = status_for(exc) if isinstance(exc, FinanceError) else 500
    if status_code >= 500:
        logger.error("[API] %s %s -> %d: %s", request.method, request.url.path, status_code, exc)
    else:
        logger.info("[API] %s %s -> %d: %s", request.method, request.url.path, status_code, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FinanceError, finance_error_handler)
