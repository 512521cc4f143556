"""Tests for settings loading."""

import pytest
from pydantic import ValidationError

from billpro.config.settings import BillingSettings, StorageSettings


class TestBillingSettings:
    def test_defaults(self):
        billing = BillingSettings()
        assert billing.tax_regime == "dual"
        assert billing.low_stock_threshold == 10
        assert billing.number_prefix == "INV-"
        assert billing.ordinal_width == 3

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("BILLING_TAX_REGIME", "single")
        monkeypatch.setenv("BILLING_LOW_STOCK_THRESHOLD", "3")

        billing = BillingSettings()

        assert billing.tax_regime == "single"
        assert billing.low_stock_threshold == 3

    def test_rejects_unknown_regime(self, monkeypatch):
        monkeypatch.setenv("BILLING_TAX_REGIME", "vat")
        with pytest.raises(ValidationError):
            BillingSettings()

    def test_rejects_inconsistent_page_sizes(self, monkeypatch):
        monkeypatch.setenv("BILLING_DEFAULT_PAGE_SIZE", "500")
        with pytest.raises(ValidationError):
            BillingSettings()

    def test_rejects_blank_prefix(self, monkeypatch):
        monkeypatch.setenv("BILLING_NUMBER_PREFIX", "  ")
        with pytest.raises(ValidationError):
            BillingSettings()


class TestStorageSettings:
    def test_db_path(self, monkeypatch, tmp_path):
        monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("STORAGE_DB_NAME", "shop.db")
        assert StorageSettings().db_path == tmp_path / "shop.db"
