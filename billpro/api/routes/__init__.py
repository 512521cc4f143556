"""API route modules."""

from billpro.api.routes.customers import router as customers_router
from billpro.api.routes.health import router as health_router
from billpro.api.routes.invoices import router as invoices_router
from billpro.api.routes.products import router as products_router
from billpro.api.routes.stock import router as stock_router

__all__ = [
    "customers_router",
    "health_router",
    "invoices_router",
    "products_router",
    "stock_router",
]
