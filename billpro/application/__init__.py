"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate core services
3. Providing factory functions for dependency injection

Use cases are the only entry point for API handlers that change state.
"""

from billpro.application.dto.requests import (
    CreateCustomerRequest,
    CreateInvoiceRequest,
    CreateProductRequest,
    StatusUpdateRequest,
    StockCheckRequest,
    UpdateInvoiceRequest,
)
from billpro.application.dto.responses import (
    ErrorResponse,
    HealthResponse,
    InvoiceListResponse,
    InvoiceResponse,
    StockReportResponse,
)
from billpro.application.services import get_invoice_lifecycle_manager, reset_services
from billpro.application.use_cases import (
    CheckStockUseCase,
    CreateInvoiceUseCase,
    UpdateInvoiceUseCase,
)

__all__ = [
    # Requests
    "CreateCustomerRequest",
    "CreateInvoiceRequest",
    "CreateProductRequest",
    "StatusUpdateRequest",
    "StockCheckRequest",
    "UpdateInvoiceRequest",
    # Responses
    "ErrorResponse",
    "HealthResponse",
    "InvoiceListResponse",
    "InvoiceResponse",
    "StockReportResponse",
    # Services
    "get_invoice_lifecycle_manager",
    "reset_services",
    # Use cases
    "CheckStockUseCase",
    "CreateInvoiceUseCase",
    "UpdateInvoiceUseCase",
]
