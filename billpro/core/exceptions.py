"""
Domain exceptions for the BillPro application.

Every error the invoice lifecycle reports to its caller is one of these, so a
request handler can render a complete message from ``code`` and ``details``.
"""

from typing import Any


class BillProError(Exception):
    """Base exception for all BillPro errors."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Validation Exceptions
class ValidationError(BillProError):
    """Candidate invoice failed field validation.

    Carries every violation found, not just the first one.
    """

    def __init__(self, violations: list[dict[str, Any]]):
        summary = "; ".join(f"{v['field']}: {v['message']}" for v in violations)
        super().__init__(
            f"Invoice validation failed: {summary}",
            code="VALIDATION_ERROR",
            details={"violations": violations},
        )
        self.violations = violations

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}])


class StockViolationError(BillProError):
    """One or more line items exceed available stock."""

    def __init__(self, violations: list[dict[str, Any]]):
        products = ", ".join(
            f"{v['product_id']} (short {v['shortfall']})" for v in violations
        )
        super().__init__(
            f"Insufficient stock for: {products}",
            code="STOCK_VIOLATION",
            details={"violations": violations},
        )
        self.violations = violations


# Lookup Exceptions
class NotFoundError(BillProError):
    """Referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: str, code: str | None = None):
        super().__init__(
            f"{entity.capitalize()} not found: {entity_id}",
            code=code or "NOT_FOUND",
            details={"entity": entity, "id": entity_id},
        )


class InvoiceNotFoundError(NotFoundError):
    """Invoice not found in storage (or already deleted)."""

    def __init__(self, invoice_id: str):
        super().__init__("invoice", invoice_id, code="INVOICE_NOT_FOUND")


class ProductNotFoundError(NotFoundError):
    """Product not found in storage."""

    def __init__(self, product_id: str):
        super().__init__("product", product_id, code="PRODUCT_NOT_FOUND")


class CustomerNotFoundError(NotFoundError):
    """Customer not found in storage."""

    def __init__(self, customer_id: str):
        super().__init__("customer", customer_id, code="CUSTOMER_NOT_FOUND")


# Consistency Exceptions
class ReconciliationError(BillProError):
    """Stock write failed after the invoice passed validation.

    The surrounding transaction must be rolled back when this is raised.
    """

    def __init__(self, product_id: str, delta: int, reason: str):
        super().__init__(
            f"Stock reconciliation failed for product {product_id} "
            f"(delta {delta}): {reason}",
            code="RECONCILIATION_FAILED",
            details={"product_id": product_id, "delta": delta, "reason": reason},
        )


class NumberingError(BillProError):
    """Invoice is missing from the stable creation ordering."""

    def __init__(self, invoice_id: str):
        super().__init__(
            f"Cannot number invoice {invoice_id}: not present in creation ordering",
            code="NUMBERING_ERROR",
            details={"invoice_id": invoice_id},
        )


class NumberingConflictError(BillProError):
    """Two invoices resolve to the same number."""

    def __init__(self, number: str):
        super().__init__(
            f"Invoice number already in use: {number}",
            code="NUMBERING_CONFLICT",
            details={"number": number},
        )


# Storage Exceptions
class StorageError(BillProError):
    """Base exception for storage operations."""

    pass


class StoreUnavailableError(StorageError):
    """Backing store could not be reached. Callers may retry."""

    retryable = True

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Store unavailable during {operation}: {error}",
            code="STORE_UNAVAILABLE",
            details={"operation": operation, "error": error},
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


class ConfigurationError(BillProError):
    """Configuration error."""

    pass
