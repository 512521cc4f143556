"""API tests for invoice endpoints."""

from datetime import date

import pytest

from billpro.core.entities.invoice import InvoiceFilter, InvoicePage, InvoiceStatus
from billpro.core.exceptions import (
    InvoiceNotFoundError,
    NumberingConflictError,
    StockViolationError,
    StoreUnavailableError,
)

LINE = {"product_id": "P-001", "quantity": 2, "unit_price": "100", "tax_rate": "18"}


class TestCreateInvoice:
    """POST /api/invoices"""

    async def test_created(self, client, mock_manager):
        response = await client.post(
            "/api/invoices",
            json={"customer_id": "CUST-001", "line_items": [LINE], "created_by": "cashier"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["number"] == "05032026001"
        assert data["subtotal"] == "200.00"
        assert data["total_tax"] == "36.00"
        assert data["total"] == "236.00"
        assert [c["name"] for c in data["tax"]["components"]] == ["CGST", "SGST"]
        assert [c["amount"] for c in data["tax"]["components"]] == ["18.00", "18.00"]
        assert mock_manager.create.call_args.kwargs == {"created_by": "cashier"}

    async def test_business_rule_violations_are_itemized(self, client, mock_manager):
        response = await client.post(
            "/api/invoices",
            json={
                "customer_id": "",
                "line_items": [
                    {**LINE, "quantity": 0},
                    {**LINE, "unit_price": "-3"},
                ],
            },
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "VALIDATION_ERROR"
        fields = {v["field"] for v in data["violations"]}
        assert fields == {"customer_id", "line_items.0.quantity", "line_items.1.unit_price"}
        mock_manager.create.assert_not_awaited()

    async def test_unrepresentable_price_rejected_before_create(self, client, mock_manager):
        response = await client.post(
            "/api/invoices",
            json={"customer_id": "CUST-001", "line_items": [{**LINE, "unit_price": "1E+27"}]},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "VALIDATION_ERROR"
        assert [v["field"] for v in data["violations"]] == ["line_items.0.unit_price"]
        mock_manager.create.assert_not_awaited()

    async def test_no_line_items(self, client):
        response = await client.post("/api/invoices", json={"customer_id": "CUST-001"})

        assert response.status_code == 400
        assert response.json()["violations"][0]["field"] == "line_items"

    async def test_malformed_body(self, client):
        response = await client.post(
            "/api/invoices",
            json={"customer_id": "CUST-001", "line_items": [{**LINE, "quantity": "two"}]},
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_stock_violation(self, client, mock_manager):
        mock_manager.create.side_effect = StockViolationError(
            [{"product_id": "P-001", "requested": 11, "available": 10, "shortfall": 1}]
        )

        response = await client.post(
            "/api/invoices",
            json={"customer_id": "CUST-001", "line_items": [{**LINE, "quantity": 11}]},
        )

        assert response.status_code == 409
        data = response.json()
        assert data["error_code"] == "STOCK_VIOLATION"
        assert data["violations"][0]["shortfall"] == 1
        assert data["hint"]

    async def test_number_conflict(self, client, mock_manager):
        mock_manager.create.side_effect = NumberingConflictError("GST/17")

        response = await client.post(
            "/api/invoices",
            json={"customer_id": "CUST-001", "line_items": [LINE], "number": "GST/17"},
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "NUMBERING_CONFLICT"

    async def test_store_unavailable_is_retryable(self, client, mock_manager):
        mock_manager.create.side_effect = StoreUnavailableError("query", "database is locked")

        response = await client.post(
            "/api/invoices",
            json={"customer_id": "CUST-001", "line_items": [LINE]},
        )

        assert response.status_code == 503
        assert response.json()["retryable"] is True
        assert response.headers["Retry-After"] == "1"


class TestReadInvoices:
    async def test_get(self, client):
        response = await client.get("/api/invoices/inv-1")

        assert response.status_code == 200
        assert response.json()["id"] == "inv-1"
        assert response.headers["X-Request-ID"]

    async def test_get_missing(self, client, mock_manager):
        mock_manager.get.side_effect = InvoiceNotFoundError("inv-404")

        response = await client.get("/api/invoices/inv-404")

        assert response.status_code == 404
        data = response.json()
        assert data["error_code"] == "INVOICE_NOT_FOUND"
        assert data["path"] == "/api/invoices/inv-404"

    async def test_list_passes_filters(self, client, mock_manager, invoice_factory):
        mock_manager.list_invoices.return_value = InvoicePage(
            invoices=[invoice_factory()], total=1, page=2, limit=10
        )

        response = await client.get(
            "/api/invoices",
            params={
                "status": "paid",
                "customer_id": "CUST-001",
                "search": "acme",
                "start_date": "2026-03-01",
                "end_date": "2026-03-31",
                "page": 2,
                "limit": 10,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["total_pages"] == 1
        filters: InvoiceFilter = mock_manager.list_invoices.call_args.args[0]
        assert filters.status == InvoiceStatus.PAID
        assert filters.search == "acme"
        assert filters.start == date(2026, 3, 1)
        assert filters.end == date(2026, 3, 31)
        assert filters.page == 2
        assert filters.limit == 10

    async def test_list_default_page_size(self, client, mock_manager):
        mock_manager.list_invoices.return_value = InvoicePage(
            invoices=[], total=0, page=1, limit=50
        )

        response = await client.get("/api/invoices")

        assert response.status_code == 200
        assert mock_manager.list_invoices.call_args.args[0].limit == 50

    @pytest.mark.parametrize("params", [{"page": 0}, {"status": "cancelled"}])
    async def test_list_rejects_bad_params(self, client, params):
        response = await client.get("/api/invoices", params=params)
        assert response.status_code == 422


class TestChangeInvoices:
    async def test_update(self, client, mock_manager, invoice_factory):
        mock_manager.update.return_value = invoice_factory(quantity=5)

        response = await client.put(
            "/api/invoices/inv-1",
            json={"line_items": [{**LINE, "quantity": 5}]},
        )

        assert response.status_code == 200
        assert response.json()["subtotal"] == "500.00"
        invoice_id, changes = mock_manager.update.call_args.args
        assert invoice_id == "inv-1"
        assert changes.line_items[0].quantity == 5
        assert changes.status is None

    async def test_update_status(self, client, mock_manager, invoice_factory):
        mock_manager.update_status.return_value = invoice_factory().model_copy(
            update={"status": InvoiceStatus.PAID}
        )

        response = await client.patch("/api/invoices/inv-1/status", json={"status": "paid"})

        assert response.status_code == 200
        assert response.json()["status"] == "paid"
        mock_manager.update_status.assert_awaited_once_with("inv-1", InvoiceStatus.PAID)

    async def test_delete(self, client, mock_manager, invoice_factory):
        mock_manager.delete.return_value = invoice_factory()

        response = await client.delete("/api/invoices/inv-1")

        assert response.status_code == 200
        mock_manager.delete.assert_awaited_once_with("inv-1")

    async def test_delete_missing(self, client, mock_manager):
        mock_manager.delete.side_effect = InvoiceNotFoundError("inv-404")

        response = await client.delete("/api/invoices/inv-404")
        assert response.status_code == 404
