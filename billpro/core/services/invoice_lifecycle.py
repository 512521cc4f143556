"""
Invoice lifecycle service.

Orchestrates validation, tax, numbering and stock reconciliation for invoice
create / update / delete, each inside one write unit of work so the invoice
record and the stock it consumed are committed or rolled back together.

Pure service -- storage is reached only through the injected unit-of-work
factory.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from billpro.config import get_logger, get_settings
from billpro.config.settings import BillingSettings
from billpro.core.entities.customer import Customer
from billpro.core.entities.invoice import (
    Invoice,
    InvoiceDraft,
    InvoiceFilter,
    InvoicePage,
    InvoiceStatus,
    InvoiceUpdate,
    LineItem,
    OrderingKey,
    TaxRegime,
    utcnow,
)
from billpro.core.entities.product import Product
from billpro.core.entities.stock import StockLevel, StockReport
from billpro.core.exceptions import (
    CustomerNotFoundError,
    InvoiceNotFoundError,
    NumberingError,
    ProductNotFoundError,
    StockViolationError,
    ValidationError,
)
from billpro.core.interfaces.unit_of_work import IUnitOfWork, UnitOfWorkFactory
from billpro.core.services.inventory_reconciler import AppliedDelta, InventoryReconciler
from billpro.core.services.numbering import NumberingAssigner, NumberingIndex
from billpro.core.services.stock_validator import check_stock
from billpro.core.services.tax_calculator import calculate_tax

logger = get_logger(__name__)


class InvoiceLifecycleManager:
    """
    Entry point for invoice create / update / delete / read.

    Status changes are plain field updates with no stock side effects; nothing
    here moves an invoice between statuses on its own.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        billing: BillingSettings | None = None,
        reconciler: InventoryReconciler | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._billing = billing or get_settings().billing
        self._default_regime = TaxRegime(self._billing.tax_regime)
        self._numbering = NumberingAssigner(
            placeholder_prefix=self._billing.number_prefix,
            ordinal_width=self._billing.ordinal_width,
        )
        self._reconciler = reconciler or InventoryReconciler()
        self._index: NumberingIndex | None = None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def create(self, draft: InvoiceDraft, created_by: str | None = None) -> Invoice:
        """
        Validate, price, number and persist a new draft invoice.

        Raises:
            ValidationError: Missing customer or line items.
            CustomerNotFoundError / ProductNotFoundError: Unknown reference.
            StockViolationError: Any line exceeds current stock.
            ReconciliationError: Stock write failed after validation.
            NumberingConflictError: The resolved number is already taken.
        """
        self._validate_fields(draft.customer_id, draft.line_items)
        regime = draft.tax_regime or self._default_regime

        logger.info(
            "create_invoice_started",
            customer_id=draft.customer_id,
            items=len(draft.line_items),
        )

        async with self._uow_factory(write=True) as uow:
            customer = await self._require_customer(uow, draft.customer_id)
            products = await self._require_products(uow, draft.line_items)
            self._enforce_stock(draft.line_items, self._snapshot(products))

            tax = calculate_tax(draft.line_items, regime)

            # Read under the write lock so no other create can claim the same
            # ordinal.
            index = await self._ordering_for_create(uow)
            created_at = utcnow()
            last = index.last()
            if last is not None and last.created_at > created_at:
                created_at = last.created_at
            sequence = await uow.invoices.next_sequence()
            if not (
                self._numbering.is_placeholder(draft.number)
                or self._numbering.is_formal(draft.number)
            ):
                logger.info("reserved_number_replaced", requested=draft.number)

            invoice = Invoice(
                sequence=sequence,
                number=draft.number,
                customer_id=customer.id,
                customer_name=customer.name,
                line_items=list(draft.line_items),
                tax_regime=regime,
                tax=tax,
                status=InvoiceStatus.DRAFT,
                due_date=draft.due_date or created_at.date(),
                notes=draft.notes,
                payment_type=draft.payment_type,
                created_by=created_by,
                created_at=created_at,
                updated_at=created_at,
            )
            index = index.extended(OrderingKey(created_at, sequence, invoice.id))
            invoice.number = self._numbering.assign(invoice, index)

            invoice = await uow.invoices.add(invoice)
            applied = await self._reconciler.on_create(uow.products, invoice)

        self._publish_index(index)
        logger.info(
            "invoice_created",
            invoice_id=invoice.id,
            number=invoice.number,
            total=invoice.total,
        )
        self._warn_low_stock(applied, products)
        return invoice

    async def update(self, invoice_id: str, changes: InvoiceUpdate) -> Invoice:
        """
        Apply changes to a live invoice.

        Stock is re-balanced by the per-product difference between the
        previously persisted line items and the new ones. Status is kept
        unless ``changes.status`` is set.
        """
        async with self._uow_factory(write=True) as uow:
            current = await uow.invoices.get(invoice_id)
            if current is None:
                raise InvoiceNotFoundError(invoice_id)

            customer_id = changes.customer_id if changes.customer_id is not None else current.customer_id
            line_items = changes.line_items if changes.line_items is not None else current.line_items
            self._validate_fields(customer_id, line_items)

            customer = await self._require_customer(uow, customer_id)
            products = await self._require_products(uow, line_items)
            # Quantities this invoice already holds count as available to it.
            snapshot = self._snapshot(products, credit=current.quantities_by_product())
            self._enforce_stock(line_items, snapshot)

            regime = changes.tax_regime or current.tax_regime
            updated = current.model_copy(
                update={
                    "customer_id": customer.id,
                    "customer_name": customer.name,
                    "line_items": list(line_items),
                    "tax_regime": regime,
                    "tax": calculate_tax(line_items, regime),
                    "due_date": changes.due_date or current.due_date,
                    "notes": changes.notes if changes.notes is not None else current.notes,
                    "status": changes.status or current.status,
                    "payment_type": changes.payment_type or current.payment_type,
                    "updated_at": utcnow(),
                }
            )

            updated = await uow.invoices.replace(updated)
            applied = await self._reconciler.on_update(uow.products, current, updated)

        logger.info(
            "invoice_updated",
            invoice_id=invoice_id,
            stock_changes=len(applied),
            total=updated.total,
        )
        self._warn_low_stock(applied, products)
        return updated

    async def update_status(self, invoice_id: str, status: InvoiceStatus) -> Invoice:
        """Change status only. Stock is untouched."""
        async with self._uow_factory(write=True) as uow:
            current = await uow.invoices.get(invoice_id)
            if current is None:
                raise InvoiceNotFoundError(invoice_id)
            updated = current.model_copy(update={"status": status, "updated_at": utcnow()})
            updated = await uow.invoices.replace(updated)

        logger.info(
            "invoice_status_changed",
            invoice_id=invoice_id,
            old_status=current.status.value,
            new_status=status.value,
        )
        return updated

    async def delete(self, invoice_id: str) -> Invoice:
        """Restore all stock held by the invoice, then tombstone it."""
        async with self._uow_factory(write=True) as uow:
            current = await uow.invoices.get(invoice_id)
            if current is None:
                raise InvoiceNotFoundError(invoice_id)

            applied = await self._reconciler.on_delete(uow.products, current)
            deleted_at = utcnow()
            await uow.invoices.mark_deleted(invoice_id, deleted_at)

        logger.info(
            "invoice_deleted",
            invoice_id=invoice_id,
            number=current.number,
            restored_products=len(applied),
        )
        return current.model_copy(update={"deleted_at": deleted_at})

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get(self, invoice_id: str) -> Invoice:
        async with self._uow_factory(write=False) as uow:
            invoice = await uow.invoices.get(invoice_id)
            if invoice is None:
                raise InvoiceNotFoundError(invoice_id)
            [invoice] = await self._attach_numbers(uow, [invoice])
        return invoice

    async def list_invoices(self, filters: InvoiceFilter | None = None) -> InvoicePage:
        """Filtered, paginated invoices, newest first, with numbers attached."""
        filters = filters or InvoiceFilter(limit=self._billing.default_page_size)
        if filters.limit > self._billing.max_page_size:
            filters = filters.model_copy(update={"limit": self._billing.max_page_size})

        async with self._uow_factory(write=False) as uow:
            invoices = await uow.invoices.list_invoices(filters)
            total = await uow.invoices.count(filters)
            invoices = await self._attach_numbers(uow, invoices)

        return InvoicePage(
            invoices=invoices,
            total=total,
            page=filters.page,
            limit=filters.limit,
        )

    async def check_stock(self, line_items: Sequence[LineItem]) -> StockReport:
        """
        Advisory stock report for an invoice being composed.

        Unknown products are reported as BLOCKED rather than raised. The
        result is never reused on commit.
        """
        async with self._uow_factory(write=False) as uow:
            products = await uow.products.get_many({item.product_id for item in line_items})
        return check_stock(
            line_items,
            self._snapshot(products),
            default_threshold=self._billing.low_stock_threshold,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_fields(customer_id: str | None, line_items: Sequence[LineItem]) -> None:
        violations: list[dict[str, Any]] = []
        if not customer_id or not customer_id.strip():
            violations.append({"field": "customer_id", "message": "customer is required"})
        if not line_items:
            violations.append(
                {"field": "line_items", "message": "at least one line item is required"}
            )
        if violations:
            raise ValidationError(violations)

    @staticmethod
    async def _require_customer(uow: IUnitOfWork, customer_id: str) -> Customer:
        customer = await uow.customers.get(customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        return customer

    @staticmethod
    async def _require_products(
        uow: IUnitOfWork, line_items: Iterable[LineItem]
    ) -> dict[str, Product]:
        product_ids = {item.product_id for item in line_items}
        products = await uow.products.get_many(product_ids)
        missing = sorted(product_ids - products.keys())
        if missing:
            raise ProductNotFoundError(missing[0])
        return products

    @staticmethod
    def _snapshot(
        products: Mapping[str, Product], credit: Mapping[str, int] | None = None
    ) -> dict[str, StockLevel]:
        credit = credit or {}
        return {
            product_id: StockLevel(
                product_id=product_id,
                available=product.stock_quantity + credit.get(product_id, 0),
                low_stock_threshold=product.low_stock_threshold,
                name=product.name,
            )
            for product_id, product in products.items()
        }

    def _enforce_stock(
        self, line_items: Sequence[LineItem], snapshot: Mapping[str, StockLevel]
    ) -> None:
        report = check_stock(
            line_items, snapshot, default_threshold=self._billing.low_stock_threshold
        )
        if report.is_blocked:
            violations = report.violation_details()
            logger.warning("stock_violation", violations=violations)
            raise StockViolationError(violations)

    async def _attach_numbers(
        self, uow: IUnitOfWork, invoices: list[Invoice]
    ) -> list[Invoice]:
        """Resolve each invoice's number from the stable creation ordering."""
        numbered = []
        for invoice in invoices:
            # Stored numbers are final; only placeholders are derived on read
            if not self._numbering.is_placeholder(invoice.number):
                numbered.append(invoice)
                continue

            index = await self._get_index(uow)
            if invoice.id not in index:
                # Created by another process since the cache was built.
                index = await self._refresh_index(uow)
            try:
                number = self._numbering.derive(invoice, index)
            except NumberingError:
                logger.error("invoice_missing_from_ordering", invoice_id=invoice.id)
                raise
            numbered.append(invoice.model_copy(update={"number": number}))
        return numbered

    async def _ordering_for_create(self, uow: IUnitOfWork) -> NumberingIndex:
        """
        The full creation ordering, as seen under the write lock.

        New keys always sort last and rows are never removed, so a cached
        index whose newest key matches the store's is complete. Anything else
        (first use, another process created invoices) is reloaded.
        """
        last = await uow.invoices.last_ordering_key()
        if self._index is not None and self._index.last() == last:
            return self._index
        return NumberingIndex(await uow.invoices.ordering_keys())

    async def _get_index(self, uow: IUnitOfWork) -> NumberingIndex:
        if self._index is None:
            return await self._refresh_index(uow)
        return self._index

    async def _refresh_index(self, uow: IUnitOfWork) -> NumberingIndex:
        index = NumberingIndex(await uow.invoices.ordering_keys())
        self._publish_index(index)
        return index

    def _publish_index(self, index: NumberingIndex) -> None:
        # The ordering only grows, so the longer index is the newer one.
        if self._index is None or len(index) >= len(self._index):
            self._index = index

    def _warn_low_stock(
        self, applied: list[AppliedDelta], products: Mapping[str, Product]
    ) -> None:
        for change in applied:
            product = products.get(change.product_id)
            threshold = (
                product.low_stock_threshold
                if product is not None and product.low_stock_threshold is not None
                else self._billing.low_stock_threshold
            )
            if change.new_stock <= threshold:
                logger.warning(
                    "low_stock_after_invoice",
                    product_id=change.product_id,
                    stock=change.new_stock,
                    threshold=threshold,
                )
