"""Invoice domain entities."""

from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, NamedTuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from billpro.core.exceptions import ValidationError


MAX_QUANTITY = 1_000_000


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in SQLite."""
    return datetime.now(UTC).replace(tzinfo=None)


def quantize_money(value: Decimal, places: int = 2) -> Decimal:
    """Round a monetary amount for presentation."""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


class InvoiceStatus(str, Enum):
    """Caller-driven invoice status."""

    DRAFT = "draft"
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class TaxRegime(str, Enum):
    """How total tax is presented."""

    DUAL = "dual"  # CGST + SGST, half each
    SINGLE = "single"  # IGST


class PaymentType(str, Enum):
    """Payment method recorded on the invoice."""

    CASH = "cash"
    CARD = "card"
    UPI = "upi"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"


class LineItem(BaseModel):
    """A single product line on an invoice.

    Description, HSN code, price and tax rate are copied from the product when
    it is selected and may be edited independently afterwards.
    """

    model_config = ConfigDict(frozen=True)

    product_id: str = Field(min_length=1)
    description: str = ""
    hsn_code: str | None = None
    # Totals of lines within these bounds fit Decimal's 28-digit context
    quantity: int = Field(gt=0, le=MAX_QUANTITY)
    unit_price: Decimal = Field(ge=0, max_digits=18, decimal_places=6)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100, decimal_places=4)

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price

    @property
    def line_tax(self) -> Decimal:
        return self.line_total * self.tax_rate / Decimal(100)


class TaxComponent(BaseModel):
    """One reported tax component (CGST, SGST or IGST)."""

    name: str
    rate: Decimal
    amount: Decimal


class TaxSummary(BaseModel):
    """Subtotal, tax breakdown and grand total for a set of line items.

    Amounts are kept at full precision; ``rounded()`` is for presentation.
    """

    regime: TaxRegime
    subtotal: Decimal = Decimal("0")
    total_tax: Decimal = Decimal("0")
    effective_rate: Decimal = Decimal("0")
    components: list[TaxComponent] = Field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.total_tax

    def rounded(self, places: int = 2) -> "TaxSummary":
        """Round for display, keeping components summing to the rounded tax."""
        total_tax = quantize_money(self.total_tax, places)
        components: list[TaxComponent] = []
        remaining = total_tax
        for index, component in enumerate(self.components):
            if index == len(self.components) - 1:
                amount = remaining
            else:
                amount = quantize_money(component.amount, places)
                remaining -= amount
            components.append(
                TaxComponent(
                    name=component.name,
                    rate=quantize_money(component.rate, places),
                    amount=amount,
                )
            )
        return TaxSummary(
            regime=self.regime,
            subtotal=quantize_money(self.subtotal, places),
            total_tax=total_tax,
            effective_rate=quantize_money(self.effective_rate, places),
            components=components,
        )


class Invoice(BaseModel):
    """A persisted invoice."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    sequence: int | None = None
    number: str | None = None
    customer_id: str
    customer_name: str | None = None
    line_items: list[LineItem]
    tax_regime: TaxRegime = TaxRegime.DUAL
    tax: TaxSummary
    status: InvoiceStatus = InvoiceStatus.DRAFT
    due_date: date
    notes: str | None = None
    payment_type: PaymentType = PaymentType.CASH
    created_by: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    deleted_at: datetime | None = None

    @property
    def subtotal(self) -> Decimal:
        return self.tax.subtotal

    @property
    def tax_breakdown(self) -> list[TaxComponent]:
        return self.tax.components

    @property
    def total(self) -> Decimal:
        return self.tax.total

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def quantities_by_product(self) -> dict[str, int]:
        """Total quantity per product across all lines."""
        return aggregate_quantities(self.line_items)


def aggregate_quantities(items: list[LineItem]) -> dict[str, int]:
    totals: dict[str, int] = {}
    for item in items:
        totals[item.product_id] = totals.get(item.product_id, 0) + item.quantity
    return totals


def _violations_from_pydantic(exc: PydanticValidationError) -> list[dict[str, Any]]:
    violations = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error["loc"])
        violations.append({"field": loc, "message": error["msg"]})
    return violations


class InvoiceDraft(BaseModel):
    """Caller-assembled candidate invoice."""

    customer_id: str = Field(min_length=1)
    line_items: list[LineItem] = Field(min_length=1)
    due_date: date | None = None
    notes: str | None = None
    number: str | None = None
    tax_regime: TaxRegime | None = None
    payment_type: PaymentType = PaymentType.CASH

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "InvoiceDraft":
        """Build a draft from raw data, reporting every bad field at once."""
        try:
            return cls.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(_violations_from_pydantic(e)) from e


class InvoiceUpdate(BaseModel):
    """Partial update. Fields left as ``None`` keep their current value."""

    customer_id: str | None = None
    line_items: list[LineItem] | None = None
    due_date: date | None = None
    notes: str | None = None
    status: InvoiceStatus | None = None
    tax_regime: TaxRegime | None = None
    payment_type: PaymentType | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "InvoiceUpdate":
        try:
            return cls.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(_violations_from_pydantic(e)) from e


class InvoiceFilter(BaseModel):
    """List filters for invoices."""

    status: InvoiceStatus | None = None
    customer_id: str | None = None
    search: str | None = None
    start: date | None = None
    end: date | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1)
    include_deleted: bool = False


class InvoicePage(BaseModel):
    """One page of invoices plus paging metadata."""

    invoices: list[Invoice]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0


class OrderingKey(NamedTuple):
    """Position of an invoice in the stable creation ordering."""

    created_at: datetime
    sequence: int
    invoice_id: str


_line_items_adapter = TypeAdapter(list[LineItem])


def line_items_from_payload(items: list[dict[str, Any]]) -> list[LineItem]:
    """Validate raw line items, reporting every bad field at once."""
    try:
        return _line_items_adapter.validate_python(items)
    except PydanticValidationError as e:
        violations = [
            {**v, "field": f"line_items.{v['field']}"}
            for v in _violations_from_pydantic(e)
        ]
        raise ValidationError(violations) from e
