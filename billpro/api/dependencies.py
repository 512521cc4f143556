"""
Dependency injection container for FastAPI.

Provides service instances to route handlers. Tests override these with
``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends

from billpro.application.services import get_invoice_lifecycle_manager
from billpro.application.use_cases import (
    CheckStockUseCase,
    CreateInvoiceUseCase,
    UpdateInvoiceUseCase,
)
from billpro.config import Settings, get_settings
from billpro.core.services import InvoiceLifecycleManager
from billpro.infrastructure.storage.sqlite import (
    SQLiteCustomerStore,
    SQLiteProductStore,
    get_customer_store,
    get_product_store,
)


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


# Service dependencies
def get_lifecycle_manager() -> InvoiceLifecycleManager:
    """Get invoice lifecycle manager."""
    return get_invoice_lifecycle_manager()


# Use case dependencies
def get_create_invoice_use_case(
    manager: InvoiceLifecycleManager = Depends(get_lifecycle_manager),
) -> CreateInvoiceUseCase:
    """Get create invoice use case."""
    return CreateInvoiceUseCase(manager)


def get_update_invoice_use_case(
    manager: InvoiceLifecycleManager = Depends(get_lifecycle_manager),
) -> UpdateInvoiceUseCase:
    """Get update invoice use case."""
    return UpdateInvoiceUseCase(manager)


def get_check_stock_use_case(
    manager: InvoiceLifecycleManager = Depends(get_lifecycle_manager),
) -> CheckStockUseCase:
    """Get check stock use case."""
    return CheckStockUseCase(manager)


# Store dependencies
async def get_prod_store() -> SQLiteProductStore:
    """Get product store."""
    return await get_product_store()


async def get_cust_store() -> SQLiteCustomerStore:
    """Get customer store."""
    return await get_customer_store()
