"""Abstract interface for product and stock storage."""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from billpro.core.entities.product import Product, StockMovement


class IProductStore(ABC):
    """Interface for product lookup and stock adjustment."""

    @abstractmethod
    async def create(self, product: Product) -> Product:
        """Create a new product."""
        pass

    @abstractmethod
    async def get(self, product_id: str) -> Product | None:
        """Get product by ID."""
        pass

    @abstractmethod
    async def get_many(self, product_ids: Iterable[str]) -> dict[str, Product]:
        """Get products by ID. Unknown IDs are absent from the result."""
        pass

    @abstractmethod
    async def list_products(self, limit: int = 100, offset: int = 0) -> list[Product]:
        """List products with pagination."""
        pass

    @abstractmethod
    async def adjust_stock(self, product_id: str, delta: int) -> int | None:
        """Add ``delta`` to stock unless the result would be negative.

        Returns the new stock level, or ``None`` when the guard refused the
        change. Raises ProductNotFoundError for unknown products.
        """
        pass

    @abstractmethod
    async def add_movement(self, movement: StockMovement) -> StockMovement:
        """Record a stock movement."""
        pass

    @abstractmethod
    async def list_movements(
        self,
        product_id: str | None = None,
        invoice_id: str | None = None,
        limit: int = 100,
    ) -> list[StockMovement]:
        """Get movements, oldest first."""
        pass
