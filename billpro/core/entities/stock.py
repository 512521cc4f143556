"""Stock check report entities."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class StockStatus(str, Enum):
    """Classification of a line item against available stock."""

    OK = "ok"
    LOW = "low"
    BLOCKED = "blocked"


class StockReason(str, Enum):
    OUT_OF_STOCK = "out_of_stock"
    INSUFFICIENT_STOCK = "insufficient_stock"
    UNKNOWN_PRODUCT = "unknown_product"
    LOW_STOCK = "low_stock"


class StockLevel(BaseModel):
    """Snapshot of a product's stock as seen by the validator."""

    product_id: str
    available: int
    low_stock_threshold: int | None = None
    name: str | None = None


class StockCheck(BaseModel):
    """Result for one line item."""

    line_index: int
    product_id: str
    product_name: str | None = None
    requested: int
    available: int
    status: StockStatus
    reason: StockReason | None = None

    @property
    def shortfall(self) -> int:
        return max(self.requested - self.available, 0)


class StockReport(BaseModel):
    """Every line item's classification, in line order."""

    checks: list[StockCheck] = Field(default_factory=list)

    @property
    def blocked(self) -> list[StockCheck]:
        return [c for c in self.checks if c.status == StockStatus.BLOCKED]

    @property
    def low(self) -> list[StockCheck]:
        return [c for c in self.checks if c.status == StockStatus.LOW]

    @property
    def is_blocked(self) -> bool:
        return any(c.status == StockStatus.BLOCKED for c in self.checks)

    def violation_details(self) -> list[dict[str, Any]]:
        """One entry per blocked product, for StockViolationError."""
        seen: set[str] = set()
        details = []
        for check in self.blocked:
            if check.product_id in seen:
                continue
            seen.add(check.product_id)
            details.append(
                {
                    "product_id": check.product_id,
                    "product_name": check.product_name,
                    "requested": check.requested,
                    "available": check.available,
                    "shortfall": check.shortfall,
                    "reason": check.reason.value if check.reason else None,
                }
            )
        return details
