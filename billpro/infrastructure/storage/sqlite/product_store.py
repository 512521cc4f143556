"""SQLite implementation of product and stock storage."""

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal

import aiosqlite

from billpro.config import get_logger
from billpro.core.entities.invoice import utcnow
from billpro.core.entities.product import MovementReason, Product, StockMovement
from billpro.core.exceptions import ProductNotFoundError
from billpro.core.interfaces.product_store import IProductStore
from billpro.infrastructure.storage.sqlite.base import SQLiteStore

logger = get_logger(__name__)


class SQLiteProductStore(SQLiteStore, IProductStore):
    """SQLite implementation of product catalog and stock movement storage."""

    async def create(self, product: Product) -> Product:
        """Create a new product."""
        now = utcnow()
        product.created_at = now
        product.updated_at = now
        async with self._transaction() as conn:
            await conn.execute(
                """
                INSERT INTO products (
                    id, name, description, hsn_code, price, tax_rate,
                    stock_quantity, low_stock_threshold, is_active,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    product.id,
                    product.name,
                    product.description,
                    product.hsn_code,
                    str(product.price),
                    str(product.tax_rate),
                    product.stock_quantity,
                    product.low_stock_threshold,
                    1 if product.is_active else 0,
                    product.created_at.isoformat(),
                    product.updated_at.isoformat(),
                ),
            )
            logger.info(
                "product_created",
                product_id=product.id,
                name=product.name,
                stock=product.stock_quantity,
            )
            return product

    async def get(self, product_id: str) -> Product | None:
        """Get product by ID."""
        async with self._connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM products WHERE id = ?", (product_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_product(row)

    async def get_many(self, product_ids: Iterable[str]) -> dict[str, Product]:
        """Get products by ID in one query."""
        ids = sorted(set(product_ids))
        if not ids:
            return {}
        placeholders = ", ".join("?" for _ in ids)
        async with self._connection() as conn:
            cursor = await conn.execute(
                f"SELECT * FROM products WHERE id IN ({placeholders})",
                ids,
            )
            rows = await cursor.fetchall()
            return {row["id"]: self._row_to_product(row) for row in rows}

    async def list_products(self, limit: int = 100, offset: int = 0) -> list[Product]:
        """List products with pagination."""
        async with self._connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM products
                ORDER BY name, id
                LIMIT ? OFFSET ?
                """,
                (limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_product(row) for row in rows]

    async def adjust_stock(self, product_id: str, delta: int) -> int | None:
        """
        Add ``delta`` to a product's stock in one guarded statement.

        The WHERE clause refuses any change that would take stock below zero,
        so a decrement can never oversell even if the caller's check is stale.
        """
        async with self._transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE products
                SET stock_quantity = stock_quantity + ?, updated_at = ?
                WHERE id = ? AND stock_quantity + ? >= 0
                """,
                (delta, utcnow().isoformat(), product_id, delta),
            )
            if cursor.rowcount == 0:
                cursor = await conn.execute(
                    "SELECT stock_quantity FROM products WHERE id = ?",
                    (product_id,),
                )
                row = await cursor.fetchone()
                if row is None:
                    raise ProductNotFoundError(product_id)
                logger.warning(
                    "stock_adjustment_refused",
                    product_id=product_id,
                    delta=delta,
                    stock=row["stock_quantity"],
                )
                return None

            cursor = await conn.execute(
                "SELECT stock_quantity FROM products WHERE id = ?",
                (product_id,),
            )
            row = await cursor.fetchone()
            return row["stock_quantity"]

    async def add_movement(self, movement: StockMovement) -> StockMovement:
        """Record a stock movement."""
        async with self._transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO stock_movements (
                    product_id, delta, reason, invoice_id, created_at
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (
                    movement.product_id,
                    movement.delta,
                    movement.reason.value,
                    movement.invoice_id,
                    movement.created_at.isoformat(),
                ),
            )
            movement.id = cursor.lastrowid
            logger.info(
                "stock_movement_recorded",
                movement_id=movement.id,
                product_id=movement.product_id,
                reason=movement.reason.value,
                delta=movement.delta,
            )
            return movement

    async def list_movements(
        self,
        product_id: str | None = None,
        invoice_id: str | None = None,
        limit: int = 100,
    ) -> list[StockMovement]:
        """Get movements, oldest first."""
        conditions = []
        params: list = []
        if product_id is not None:
            conditions.append("product_id = ?")
            params.append(product_id)
        if invoice_id is not None:
            conditions.append("invoice_id = ?")
            params.append(invoice_id)
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.append(limit)

        async with self._connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM stock_movements
                {where}
                ORDER BY id
                LIMIT ?
                """,
                params,
            )
            rows = await cursor.fetchall()
            return [self._row_to_movement(row) for row in rows]

    @staticmethod
    def _row_to_product(row: aiosqlite.Row) -> Product:
        """Convert a database row to a Product entity."""
        return Product(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            hsn_code=row["hsn_code"],
            price=Decimal(row["price"]),
            tax_rate=Decimal(row["tax_rate"]),
            stock_quantity=row["stock_quantity"],
            low_stock_threshold=row["low_stock_threshold"],
            is_active=bool(row["is_active"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _row_to_movement(row: aiosqlite.Row) -> StockMovement:
        """Convert a database row to a StockMovement entity."""
        return StockMovement(
            id=row["id"],
            product_id=row["product_id"],
            delta=row["delta"],
            reason=MovementReason(row["reason"]),
            invoice_id=row["invoice_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
