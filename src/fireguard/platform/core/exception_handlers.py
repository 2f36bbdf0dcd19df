"""
Exception handlers for the FastAPI application.

Billing errors render their own payload and status code. Request validation
errors share that payload shape, and database failures are logged and
returned as 503.
"""

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from fireguard.platform.billing.exceptions import BillingError

logger = structlog.get_logger(__name__)


async def billing_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, BillingError):
        raise exc
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "billing.error",
        error_code=exc.error_code,
        status_code=exc.status_code,
        path=request.url.path,
        context=exc.context,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, RequestValidationError):
        raise exc
    return JSONResponse(
        status_code=422,
        content={
            "error_code": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "status_code": 422,
            "context": {"errors": jsonable_errors(exc)},
            "recovery_hint": "Check the request body and parameters",
        },
    )


async def database_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("database.error", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "error_code": "DATABASE_ERROR",
            "message": "The database is temporarily unavailable",
            "status_code": status.HTTP_503_SERVICE_UNAVAILABLE,
            "context": {},
            "recovery_hint": "Retry the request; ledger writes are idempotent",
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    return [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": str(err.get("msg", ""))}
        for err in exc.errors()
    ]


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the billing, validation and database handlers to ``app``."""
    app.add_exception_handler(BillingError, billing_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)


__all__ = ["register_exception_handlers"]
