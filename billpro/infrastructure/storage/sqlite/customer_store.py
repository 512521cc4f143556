"""SQLite implementation of customer storage."""

from datetime import datetime

import aiosqlite

from billpro.config import get_logger
from billpro.core.entities.customer import Customer
from billpro.core.interfaces.customer_store import ICustomerStore
from billpro.infrastructure.storage.sqlite.base import SQLiteStore

logger = get_logger(__name__)


class SQLiteCustomerStore(SQLiteStore, ICustomerStore):
    """SQLite implementation of customer storage."""

    async def create(self, customer: Customer) -> Customer:
        async with self._transaction() as conn:
            await conn.execute(
                """
                INSERT INTO customers (id, name, phone, email, gst_number, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    customer.id,
                    customer.name,
                    customer.phone,
                    customer.email,
                    customer.gst_number,
                    customer.created_at.isoformat(),
                ),
            )
            logger.info("customer_created", customer_id=customer.id, name=customer.name)
            return customer

    async def get(self, customer_id: str) -> Customer | None:
        async with self._connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM customers WHERE id = ?", (customer_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_customer(row)

    async def list_customers(self, limit: int = 100, offset: int = 0) -> list[Customer]:
        async with self._connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM customers
                ORDER BY name, id
                LIMIT ? OFFSET ?
                """,
                (limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_customer(row) for row in rows]

    @staticmethod
    def _row_to_customer(row: aiosqlite.Row) -> Customer:
        return Customer(
            id=row["id"],
            name=row["name"],
            phone=row["phone"],
            email=row["email"],
            gst_number=row["gst_number"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
