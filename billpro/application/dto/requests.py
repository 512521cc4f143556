"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.

Field types are checked here; business rules (positive quantities,
non-negative prices, required customer and lines) are checked when the
request is turned into domain objects so every violation is reported
together.
"""

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from billpro.core.entities.invoice import InvoiceStatus, PaymentType, TaxRegime


class LineItemRequest(BaseModel):
    """One requested invoice line."""

    product_id: str = Field(..., description="Product ID")
    description: str = Field(default="", description="Line description")
    hsn_code: str | None = Field(default=None, description="HSN/SAC code")
    quantity: int = Field(..., description="Units sold", examples=[2])
    unit_price: Decimal = Field(..., description="Price per unit", examples=["100.00"])
    tax_rate: Decimal = Field(
        default=Decimal("0"),
        description="Tax rate in percent",
        examples=["18"],
    )


class CreateInvoiceRequest(BaseModel):
    """Request to create an invoice."""

    customer_id: str = Field(default="", description="Customer ID")
    line_items: list[LineItemRequest] = Field(
        default_factory=list, description="Line items to invoice"
    )
    due_date: date | None = Field(
        default=None,
        description="Due date (defaults to the creation date)",
    )
    notes: str | None = Field(default=None, description="Additional notes")
    number: str | None = Field(
        default=None,
        description=(
            "Formal invoice number; omit it, or send an INV- placeholder or a"
            " DDMMYYYYNNN-shaped value, to have one derived"
        ),
    )
    tax_regime: TaxRegime | None = Field(
        default=None,
        description="Tax presentation regime (defaults to configuration)",
    )
    payment_type: PaymentType = Field(default=PaymentType.CASH)
    created_by: str | None = Field(default=None, description="User creating the invoice")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude={"created_by"})


class UpdateInvoiceRequest(BaseModel):
    """Request to update an invoice. Omitted fields are left unchanged."""

    customer_id: str | None = None
    line_items: list[LineItemRequest] | None = None
    due_date: date | None = None
    notes: str | None = None
    status: InvoiceStatus | None = None
    tax_regime: TaxRegime | None = None
    payment_type: PaymentType | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class StatusUpdateRequest(BaseModel):
    """Request to change only an invoice's status."""

    status: InvoiceStatus = Field(..., description="New status")


class StockCheckRequest(BaseModel):
    """Advisory stock check for line items being composed."""

    line_items: list[LineItemRequest] = Field(..., description="Proposed line items")


class CreateProductRequest(BaseModel):
    """Request to create a product."""

    id: str | None = Field(default=None, description="Product ID (generated if omitted)")
    name: str = Field(..., min_length=1, description="Product name")
    description: str | None = None
    hsn_code: str | None = None
    price: Decimal = Field(..., ge=0)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0)
    stock_quantity: int = Field(default=0, ge=0)
    low_stock_threshold: int | None = Field(default=None, ge=0)


class CreateCustomerRequest(BaseModel):
    """Request to create a customer."""

    id: str | None = Field(default=None, description="Customer ID (generated if omitted)")
    name: str = Field(..., min_length=1, description="Customer name")
    phone: str | None = None
    email: str | None = None
    gst_number: str | None = None
