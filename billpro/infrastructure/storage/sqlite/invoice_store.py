"""SQLite implementation of invoice storage."""

import json
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any

import aiosqlite

from billpro.config import get_logger
from billpro.core.entities.invoice import (
    Invoice,
    InvoiceFilter,
    InvoiceStatus,
    LineItem,
    OrderingKey,
    PaymentType,
    TaxComponent,
    TaxRegime,
    TaxSummary,
)
from billpro.core.exceptions import DatabaseError, InvoiceNotFoundError, NumberingConflictError
from billpro.core.interfaces.invoice_store import IInvoiceStore
from billpro.infrastructure.storage.sqlite.base import SQLiteStore

logger = get_logger(__name__)


def _escape_like(text: str) -> str:
    """Make LIKE wildcards in user input match literally (ESCAPE '\\')."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SQLiteInvoiceStore(SQLiteStore, IInvoiceStore):
    """
    SQLite implementation of invoice storage.

    Headers live in ``invoices``, lines in ``invoice_line_items``. Tax
    components are kept as a JSON array of decimal strings.
    """

    async def add(self, invoice: Invoice) -> Invoice:
        """Insert a new invoice with its line items."""
        async with self._transaction() as conn:
            try:
                await conn.execute(
                    """
                    INSERT INTO invoices (
                        id, sequence, number, customer_id, customer_name,
                        tax_regime, subtotal, total_tax, effective_rate, total,
                        tax_components, status, due_date, notes, payment_type,
                        created_by, created_at, updated_at, deleted_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        invoice.id,
                        invoice.sequence,
                        invoice.number,
                        invoice.customer_id,
                        invoice.customer_name,
                        invoice.tax_regime.value,
                        str(invoice.tax.subtotal),
                        str(invoice.tax.total_tax),
                        str(invoice.tax.effective_rate),
                        str(invoice.total),
                        self._components_to_json(invoice.tax.components),
                        invoice.status.value,
                        invoice.due_date.isoformat(),
                        invoice.notes,
                        invoice.payment_type.value,
                        invoice.created_by,
                        invoice.created_at.isoformat(),
                        invoice.updated_at.isoformat(),
                        invoice.deleted_at.isoformat() if invoice.deleted_at else None,
                    ),
                )
            except aiosqlite.IntegrityError as e:
                if "invoices.number" in str(e):
                    logger.warning("invoice_number_conflict", number=invoice.number)
                    raise NumberingConflictError(invoice.number or "") from e
                raise DatabaseError("add_invoice", str(e)) from e

            await self._insert_line_items(conn, invoice.id, invoice.line_items)

            logger.info(
                "invoice_stored",
                invoice_id=invoice.id,
                sequence=invoice.sequence,
                items=len(invoice.line_items),
            )
            return invoice

    async def replace(self, invoice: Invoice) -> Invoice:
        """Overwrite header fields and line items of a live invoice."""
        async with self._transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE invoices SET
                    customer_id = ?,
                    customer_name = ?,
                    tax_regime = ?,
                    subtotal = ?,
                    total_tax = ?,
                    effective_rate = ?,
                    total = ?,
                    tax_components = ?,
                    status = ?,
                    due_date = ?,
                    notes = ?,
                    payment_type = ?,
                    updated_at = ?
                WHERE id = ? AND deleted_at IS NULL
                """,
                (
                    invoice.customer_id,
                    invoice.customer_name,
                    invoice.tax_regime.value,
                    str(invoice.tax.subtotal),
                    str(invoice.tax.total_tax),
                    str(invoice.tax.effective_rate),
                    str(invoice.total),
                    self._components_to_json(invoice.tax.components),
                    invoice.status.value,
                    invoice.due_date.isoformat(),
                    invoice.notes,
                    invoice.payment_type.value,
                    invoice.updated_at.isoformat(),
                    invoice.id,
                ),
            )
            if cursor.rowcount == 0:
                raise InvoiceNotFoundError(invoice.id)

            await conn.execute(
                "DELETE FROM invoice_line_items WHERE invoice_id = ?",
                (invoice.id,),
            )
            await self._insert_line_items(conn, invoice.id, invoice.line_items)

            logger.info("invoice_replaced", invoice_id=invoice.id, items=len(invoice.line_items))
            return invoice

    async def get(self, invoice_id: str, include_deleted: bool = False) -> Invoice | None:
        """Get invoice by ID with line items."""
        query = "SELECT * FROM invoices WHERE id = ?"
        if not include_deleted:
            query += " AND deleted_at IS NULL"

        async with self._connection() as conn:
            cursor = await conn.execute(query, (invoice_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            items = await self._load_line_items(conn, [invoice_id])
            return self._row_to_invoice(row, items.get(invoice_id, []))

    async def list_invoices(self, filters: InvoiceFilter) -> list[Invoice]:
        """List invoices matching filters, newest first."""
        where, params = self._build_where(filters)
        offset = (filters.page - 1) * filters.limit

        async with self._connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM invoices
                {where}
                ORDER BY created_at DESC, sequence DESC
                LIMIT ? OFFSET ?
                """,
                [*params, filters.limit, offset],
            )
            rows = await cursor.fetchall()
            items = await self._load_line_items(conn, [row["id"] for row in rows])
            return [self._row_to_invoice(row, items.get(row["id"], [])) for row in rows]

    async def count(self, filters: InvoiceFilter) -> int:
        """Count invoices matching filters (ignores paging)."""
        where, params = self._build_where(filters)
        async with self._connection() as conn:
            cursor = await conn.execute(
                f"SELECT COUNT(*) FROM invoices {where}",
                params,
            )
            row = await cursor.fetchone()
            return row[0] if row else 0

    async def mark_deleted(self, invoice_id: str, deleted_at: datetime) -> None:
        """Tombstone an invoice. Its row and sequence stay in place."""
        async with self._transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE invoices SET deleted_at = ?, updated_at = ?
                WHERE id = ? AND deleted_at IS NULL
                """,
                (deleted_at.isoformat(), deleted_at.isoformat(), invoice_id),
            )
            if cursor.rowcount == 0:
                raise InvoiceNotFoundError(invoice_id)
            logger.info("invoice_tombstoned", invoice_id=invoice_id)

    async def next_sequence(self) -> int:
        async with self._connection() as conn:
            cursor = await conn.execute(
                "SELECT COALESCE(MAX(sequence), 0) + 1 FROM invoices"
            )
            row = await cursor.fetchone()
            return row[0]

    async def last_ordering_key(self) -> OrderingKey | None:
        """Newest key in the creation ordering; served by idx_invoices_ordering."""
        async with self._connection() as conn:
            cursor = await conn.execute(
                """
                SELECT id, created_at, sequence FROM invoices
                ORDER BY created_at DESC, sequence DESC
                LIMIT 1
                """
            )
            row = await cursor.fetchone()
            return self._row_to_key(row) if row else None

    async def ordering_keys(self) -> list[OrderingKey]:
        """Every invoice's ordering key, tombstoned ones included."""
        async with self._connection() as conn:
            cursor = await conn.execute(
                "SELECT id, created_at, sequence FROM invoices ORDER BY created_at, sequence"
            )
            rows = await cursor.fetchall()
            return [self._row_to_key(row) for row in rows]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_key(row: aiosqlite.Row) -> OrderingKey:
        return OrderingKey(
            created_at=datetime.fromisoformat(row["created_at"]),
            sequence=row["sequence"],
            invoice_id=row["id"],
        )

    @staticmethod
    def _build_where(filters: InvoiceFilter) -> tuple[str, list[Any]]:
        conditions: list[str] = []
        params: list[Any] = []

        if not filters.include_deleted:
            conditions.append("deleted_at IS NULL")
        if filters.status is not None:
            conditions.append("status = ?")
            params.append(filters.status.value)
        if filters.customer_id:
            conditions.append("customer_id = ?")
            params.append(filters.customer_id)
        if filters.search:
            conditions.append(
                "(number LIKE ? ESCAPE '\\' OR customer_name LIKE ? ESCAPE '\\')"
            )
            pattern = f"%{_escape_like(filters.search)}%"
            params.extend([pattern, pattern])
        # Date bounds cover whole days
        if filters.start is not None:
            conditions.append("created_at >= ?")
            params.append(filters.start.isoformat())
        if filters.end is not None:
            conditions.append("created_at < ?")
            params.append((filters.end + timedelta(days=1)).isoformat())

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        return where, params

    @staticmethod
    async def _insert_line_items(
        conn: aiosqlite.Connection, invoice_id: str, items: list[LineItem]
    ) -> None:
        for position, item in enumerate(items):
            await conn.execute(
                """
                INSERT INTO invoice_line_items (
                    invoice_id, position, product_id, description,
                    hsn_code, quantity, unit_price, tax_rate
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    invoice_id,
                    position,
                    item.product_id,
                    item.description,
                    item.hsn_code,
                    item.quantity,
                    str(item.unit_price),
                    str(item.tax_rate),
                ),
            )

    @classmethod
    async def _load_line_items(
        cls, conn: aiosqlite.Connection, invoice_ids: list[str]
    ) -> dict[str, list[LineItem]]:
        if not invoice_ids:
            return {}
        placeholders = ", ".join("?" for _ in invoice_ids)
        cursor = await conn.execute(
            f"""
            SELECT * FROM invoice_line_items
            WHERE invoice_id IN ({placeholders})
            ORDER BY invoice_id, position
            """,
            invoice_ids,
        )
        rows = await cursor.fetchall()

        items: dict[str, list[LineItem]] = {}
        for row in rows:
            items.setdefault(row["invoice_id"], []).append(cls._row_to_line_item(row))
        return items

    @staticmethod
    def _components_to_json(components: list[TaxComponent]) -> str:
        return json.dumps(
            [
                {"name": c.name, "rate": str(c.rate), "amount": str(c.amount)}
                for c in components
            ]
        )

    @staticmethod
    def _row_to_line_item(row: aiosqlite.Row) -> LineItem:
        """Convert a database row to a LineItem."""
        return LineItem(
            product_id=row["product_id"],
            description=row["description"],
            hsn_code=row["hsn_code"],
            quantity=row["quantity"],
            unit_price=Decimal(row["unit_price"]),
            tax_rate=Decimal(row["tax_rate"]),
        )

    @staticmethod
    def _row_to_invoice(row: aiosqlite.Row, items: list[LineItem]) -> Invoice:
        """Convert a database row to an Invoice entity."""
        regime = TaxRegime(row["tax_regime"])
        components = [
            TaxComponent(
                name=c["name"],
                rate=Decimal(c["rate"]),
                amount=Decimal(c["amount"]),
            )
            for c in json.loads(row["tax_components"] or "[]")
        ]

        return Invoice(
            id=row["id"],
            sequence=row["sequence"],
            number=row["number"],
            customer_id=row["customer_id"],
            customer_name=row["customer_name"],
            line_items=items,
            tax_regime=regime,
            tax=TaxSummary(
                regime=regime,
                subtotal=Decimal(row["subtotal"]),
                total_tax=Decimal(row["total_tax"]),
                effective_rate=Decimal(row["effective_rate"]),
                components=components,
            ),
            status=InvoiceStatus(row["status"]),
            due_date=date.fromisoformat(row["due_date"]),
            notes=row["notes"],
            payment_type=PaymentType(row["payment_type"]),
            created_by=row["created_by"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            deleted_at=datetime.fromisoformat(row["deleted_at"]) if row["deleted_at"] else None,
        )
