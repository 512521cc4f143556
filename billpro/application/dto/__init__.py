"""Data transfer objects for API contracts."""

from billpro.application.dto.requests import (
    CreateCustomerRequest,
    CreateInvoiceRequest,
    CreateProductRequest,
    LineItemRequest,
    StatusUpdateRequest,
    StockCheckRequest,
    UpdateInvoiceRequest,
)
from billpro.application.dto.responses import (
    ComponentHealthResponse,
    CustomerListResponse,
    CustomerResponse,
    ErrorResponse,
    HealthResponse,
    InvoiceListResponse,
    InvoiceResponse,
    LineItemResponse,
    ProductListResponse,
    ProductResponse,
    StockCheckResponse,
    StockMovementResponse,
    StockReportResponse,
    TaxBreakdownResponse,
    TaxComponentResponse,
)

__all__ = [
    # Requests
    "CreateCustomerRequest",
    "CreateInvoiceRequest",
    "CreateProductRequest",
    "LineItemRequest",
    "StatusUpdateRequest",
    "StockCheckRequest",
    "UpdateInvoiceRequest",
    # Responses
    "ComponentHealthResponse",
    "CustomerListResponse",
    "CustomerResponse",
    "ErrorResponse",
    "HealthResponse",
    "InvoiceListResponse",
    "InvoiceResponse",
    "LineItemResponse",
    "ProductListResponse",
    "ProductResponse",
    "StockCheckResponse",
    "StockMovementResponse",
    "StockReportResponse",
    "TaxBreakdownResponse",
    "TaxComponentResponse",
]
