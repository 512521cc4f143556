"""
Error handling for the billing API.

Every failure leaves the API as an ``ErrorResponse`` body:
- error_code: machine-readable identifier (``STOCK_VIOLATION``, ...)
- message: human-readable description
- hint: what the caller can do about it
- violations: every itemized problem, for validation and stock errors

Retryable errors (the store was busy or unreachable) also carry a
``Retry-After`` header.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from billpro.application.dto.responses import ErrorResponse
from billpro.config import get_logger
from billpro.core.exceptions import (
    BillProError,
    ConfigurationError,
    NotFoundError,
    NumberingConflictError,
    NumberingError,
    ReconciliationError,
    StockViolationError,
    StorageError,
    StoreUnavailableError,
    ValidationError,
)

logger = get_logger(__name__)

RETRY_AFTER_SECONDS = 1

# Looked up along the exception's MRO, so the most specific class wins
STATUS_BY_EXCEPTION: dict[type[Exception], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    StockViolationError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ReconciliationError: status.HTTP_409_CONFLICT,
    NumberingConflictError: status.HTTP_409_CONFLICT,
    NumberingError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    StoreUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ValueError: status.HTTP_400_BAD_REQUEST,
}

HINTS: dict[str, str] = {
    "INVOICE_NOT_FOUND": "Check the invoice ID. GET /api/invoices lists live invoices.",
    "PRODUCT_NOT_FOUND": "Check the product ID. GET /api/products lists products.",
    "CUSTOMER_NOT_FOUND": "Check the customer ID. GET /api/customers lists customers.",
    "VALIDATION_ERROR": "Fix every field listed in violations and resubmit.",
    "STOCK_VIOLATION": "Reduce the listed quantities or restock. POST /api/stock/check previews stock.",
    "RECONCILIATION_FAILED": "Stock changed while the invoice was saved. Nothing was written; reload and retry.",
    "NUMBERING_CONFLICT": "The invoice number is already used. Send another number or omit it.",
    "NUMBERING_ERROR": "Invoice ordering is inconsistent. Check server logs.",
    "STORE_UNAVAILABLE": "The database is busy or unreachable. Retry after a moment.",
    "NOT_FOUND": "The requested resource was not found. Verify the ID.",
}

STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    409: "The request conflicts with current state. Reload and retry.",
    422: "Check the request body fields and types.",
    500: "An internal error occurred. Check server logs.",
}

HTTP_ERROR_CODES: dict[int, str] = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def status_for(exc: Exception) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_EXCEPTION:
            return STATUS_BY_EXCEPTION[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _hint(error_code: str, status_code: int) -> str:
    return HINTS.get(error_code) or STATUS_HINTS.get(status_code, "")


def _respond(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    *,
    violations: list[dict[str, Any]] | None = None,
    detail: str | None = None,
    retryable: bool = False,
) -> JSONResponse:
    body = ErrorResponse(
        error_code=error_code,
        message=message,
        hint=_hint(error_code, status_code),
        detail=detail,
        violations=violations,
        retryable=retryable,
        path=request.url.path,
    )
    headers = {"Retry-After": str(RETRY_AFTER_SECONDS)} if retryable else None
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json"),
        headers=headers,
    )


def build_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Convert a domain or unexpected exception into an ``ErrorResponse``."""
    status_code = status_for(exc)

    if isinstance(exc, BillProError):
        error_code, message = exc.code, exc.message
        violations = exc.details.get("violations")
        retryable = exc.retryable
    else:
        error_code, message = type(exc).__name__, str(exc)
        violations, retryable = None, False

    if status_code >= 500:
        logger.error(
            "request_error",
            error_code=error_code,
            error=message,
            exc_info=exc,
        )
    else:
        logger.warning("request_rejected", error_code=error_code, error=message)

    return _respond(
        request,
        status_code,
        error_code,
        message,
        violations=violations,
        retryable=retryable,
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Last-resort handler for anything the exception handlers let through."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return build_error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain errors, request-shape errors and HTTPException."""

    @app.exception_handler(BillProError)
    async def billpro_exception_handler(request: Request, exc: BillProError) -> JSONResponse:
        return build_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def request_shape_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """The body did not parse into the request model (types, missing fields)."""
        violations = [
            {
                "field": ".".join(str(part) for part in error["loc"] if part != "body"),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        return _respond(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "VALIDATION_ERROR",
            "Request validation failed",
            violations=violations,
            detail="; ".join(f"{v['field']}: {v['message']}" for v in violations),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        error_code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        return _respond(
            request,
            exc.status_code,
            error_code,
            str(exc.detail) if exc.detail else "An error occurred",
        )
