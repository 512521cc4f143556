"""API tests for the stock preview endpoint."""

from billpro.core.entities.stock import StockCheck, StockReason, StockReport, StockStatus


class TestStockCheck:
    """POST /api/stock/check"""

    async def test_reports_each_line(self, client, mock_manager):
        mock_manager.check_stock.return_value = StockReport(
            checks=[
                StockCheck(
                    line_index=0,
                    product_id="P-001",
                    product_name="Steel bracket",
                    requested=11,
                    available=10,
                    status=StockStatus.BLOCKED,
                    reason=StockReason.INSUFFICIENT_STOCK,
                ),
                StockCheck(
                    line_index=1,
                    product_id="P-002",
                    requested=3,
                    available=8,
                    status=StockStatus.LOW,
                    reason=StockReason.LOW_STOCK,
                ),
            ]
        )

        response = await client.post(
            "/api/stock/check",
            json={
                "line_items": [
                    {"product_id": "P-001", "quantity": 11, "unit_price": "100"},
                    {"product_id": "P-002", "quantity": 3, "unit_price": "250.50"},
                ]
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["blocked"] is True
        assert [c["status"] for c in data["checks"]] == ["blocked", "low"]
        assert data["checks"][0]["shortfall"] == 1
        assert data["low_stock"] == ["P-002"]

    async def test_invalid_quantity(self, client, mock_manager):
        response = await client.post(
            "/api/stock/check",
            json={"line_items": [{"product_id": "P-001", "quantity": -1, "unit_price": "1"}]},
        )

        assert response.status_code == 400
        assert response.json()["violations"][0]["field"] == "line_items.0.quantity"
        mock_manager.check_stock.assert_not_awaited()
