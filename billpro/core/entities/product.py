"""Product and stock movement entities."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from billpro.core.entities.invoice import utcnow


class Product(BaseModel):
    """Catalog product with its current stock level."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str
    description: str | None = None
    hsn_code: str | None = None
    price: Decimal = Field(ge=0)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0)
    stock_quantity: int = Field(default=0, ge=0)
    low_stock_threshold: int | None = Field(default=None, ge=0)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class MovementReason(str, Enum):
    """Why a stock movement was recorded."""

    INVOICE_CREATE = "invoice_create"
    INVOICE_UPDATE = "invoice_update"
    INVOICE_DELETE = "invoice_delete"


class StockMovement(BaseModel):
    """Records a single signed stock delta."""

    id: int | None = None
    product_id: str
    delta: int  # positive restores stock, negative consumes it
    reason: MovementReason
    invoice_id: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
