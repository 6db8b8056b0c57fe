"""Exception handlers mapping domain and framework errors onto JSON responses.

Every error body carries ``detail``; domain errors add ``error`` (the
exception class name) so clients can branch without parsing messages.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from wastewise.errors import InsufficientBalanceError, PersistenceError, WasteWiseError

logger = structlog.get_logger()


def domain_error_body(exc: WasteWiseError) -> dict[str, object]:
    body: dict[str, object] = {"detail": exc.message, "error": type(exc).__name__}
    if isinstance(exc, InsufficientBalanceError):
        body.update(balance=exc.balance, cost=exc.cost)
    return body


async def handle_domain_error(request: Request, exc: WasteWiseError) -> JSONResponse:
    if isinstance(exc, PersistenceError):
        logger.error("persistence_error", path=request.url.path, error=exc.message)
    else:
        logger.info("domain_error", path=request.url.path, error=type(exc).__name__, detail=exc.message)
    return JSONResponse(status_code=exc.status_code, content=domain_error_body(exc))


async def handle_http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)


async def handle_request_validation(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and query params: 422 with pydantic's error list."""
    errors = jsonable_encoder(exc.errors())
    return JSONResponse(status_code=422, content={"detail": "Validation error", "errors": errors})


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def setup_error_handlers(app: FastAPI) -> None:
    """Register the handlers, most specific first."""
    app.add_exception_handler(WasteWiseError, handle_domain_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)
