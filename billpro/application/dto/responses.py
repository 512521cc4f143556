"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.

Money is rounded to two places here and nowhere earlier.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from billpro.core.entities.customer import Customer
from billpro.core.entities.invoice import Invoice, LineItem, quantize_money
from billpro.core.entities.product import Product, StockMovement
from billpro.core.entities.stock import StockReport


class LineItemResponse(BaseModel):
    """Line item in invoice response."""

    product_id: str
    description: str
    hsn_code: str | None = None
    quantity: int
    unit_price: Decimal
    tax_rate: Decimal
    line_total: Decimal = Field(..., description="quantity * unit_price")
    line_tax: Decimal

    @classmethod
    def from_entity(cls, item: LineItem) -> "LineItemResponse":
        return cls(
            product_id=item.product_id,
            description=item.description,
            hsn_code=item.hsn_code,
            quantity=item.quantity,
            unit_price=quantize_money(item.unit_price),
            tax_rate=item.tax_rate,
            line_total=quantize_money(item.line_total),
            line_tax=quantize_money(item.line_tax),
        )


class TaxComponentResponse(BaseModel):
    """One reported tax component."""

    name: str = Field(..., examples=["CGST"])
    rate: Decimal
    amount: Decimal


class TaxBreakdownResponse(BaseModel):
    """Rounded tax summary; components always sum to total_tax."""

    regime: str
    subtotal: Decimal
    total_tax: Decimal
    effective_rate: Decimal
    total: Decimal
    components: list[TaxComponentResponse] = Field(default_factory=list)


class InvoiceResponse(BaseModel):
    """Invoice with rounded totals."""

    id: str
    number: str | None = None
    sequence: int | None = None
    customer_id: str
    customer_name: str | None = None
    status: str
    payment_type: str
    due_date: date
    notes: str | None = None
    line_items: list[LineItemResponse] = Field(default_factory=list)
    tax: TaxBreakdownResponse
    subtotal: Decimal
    total_tax: Decimal
    total: Decimal
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None

    @classmethod
    def from_entity(cls, invoice: Invoice) -> "InvoiceResponse":
        summary = invoice.tax.rounded()
        tax = TaxBreakdownResponse(
            regime=summary.regime.value,
            subtotal=summary.subtotal,
            total_tax=summary.total_tax,
            effective_rate=summary.effective_rate,
            total=summary.subtotal + summary.total_tax,
            components=[
                TaxComponentResponse(name=c.name, rate=c.rate, amount=c.amount)
                for c in summary.components
            ],
        )
        return cls(
            id=invoice.id,
            number=invoice.number,
            sequence=invoice.sequence,
            customer_id=invoice.customer_id,
            customer_name=invoice.customer_name,
            status=invoice.status.value,
            payment_type=invoice.payment_type.value,
            due_date=invoice.due_date,
            notes=invoice.notes,
            line_items=[LineItemResponse.from_entity(i) for i in invoice.line_items],
            tax=tax,
            subtotal=tax.subtotal,
            total_tax=tax.total_tax,
            total=tax.total,
            created_by=invoice.created_by,
            created_at=invoice.created_at,
            updated_at=invoice.updated_at,
            deleted_at=invoice.deleted_at,
        )


class InvoiceListResponse(BaseModel):
    """Paginated invoice list."""

    invoices: list[InvoiceResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class StockCheckResponse(BaseModel):
    """Stock classification of one line item."""

    line_index: int
    product_id: str
    product_name: str | None = None
    requested: int
    available: int
    shortfall: int
    status: str
    reason: str | None = None


class StockReportResponse(BaseModel):
    """Advisory stock report."""

    blocked: bool = Field(..., description="True if any line would be refused on commit")
    checks: list[StockCheckResponse] = Field(default_factory=list)
    low_stock: list[str] = Field(default_factory=list, description="Product IDs running low")

    @classmethod
    def from_report(cls, report: StockReport) -> "StockReportResponse":
        return cls(
            blocked=report.is_blocked,
            checks=[
                StockCheckResponse(
                    line_index=c.line_index,
                    product_id=c.product_id,
                    product_name=c.product_name,
                    requested=c.requested,
                    available=c.available,
                    shortfall=c.shortfall,
                    status=c.status.value,
                    reason=c.reason.value if c.reason else None,
                )
                for c in report.checks
            ],
            low_stock=sorted({c.product_id for c in report.low}),
        )


class ProductResponse(BaseModel):
    """Product with current stock."""

    id: str
    name: str
    description: str | None = None
    hsn_code: str | None = None
    price: Decimal
    tax_rate: Decimal
    stock_quantity: int
    low_stock_threshold: int | None = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, product: Product) -> "ProductResponse":
        return cls(**product.model_dump())


class ProductListResponse(BaseModel):
    products: list[ProductResponse]
    total: int


class StockMovementResponse(BaseModel):
    """One entry of the stock audit trail."""

    id: int | None = None
    product_id: str
    delta: int
    reason: str
    invoice_id: str | None = None
    created_at: datetime

    @classmethod
    def from_entity(cls, movement: StockMovement) -> "StockMovementResponse":
        return cls(
            id=movement.id,
            product_id=movement.product_id,
            delta=movement.delta,
            reason=movement.reason.value,
            invoice_id=movement.invoice_id,
            created_at=movement.created_at,
        )


class CustomerResponse(BaseModel):
    id: str
    name: str
    phone: str | None = None
    email: str | None = None
    gst_number: str | None = None
    created_at: datetime

    @classmethod
    def from_entity(cls, customer: Customer) -> "CustomerResponse":
        return cls(**customer.model_dump())


class CustomerListResponse(BaseModel):
    customers: list[CustomerResponse]
    total: int


class ComponentHealthResponse(BaseModel):
    """Health of a backing component."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ComponentHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. STOCK_VIOLATION)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error

    Validation and stock errors also list every violation found.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    violations: list[dict[str, Any]] | None = Field(
        default=None, description="Itemized validation or stock violations"
    )
    retryable: bool = Field(default=False, description="Whether retrying may succeed")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)
