"""
FastAPI application factory for the billing API.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from billpro.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from billpro.api.middleware.error_handler import setup_exception_handlers
from billpro.api.routes import (
    customers_router,
    health_router,
    invoices_router,
    products_router,
    stock_router,
)
from billpro.config import configure_logging, get_logger, get_settings
from billpro.infrastructure.storage.sqlite import close_pool, get_pool
from billpro.infrastructure.storage.sqlite.migrations import run_migrations

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Migrate the schema and open the pool before serving; close it after."""
    settings = get_settings()
    logger.info(
        "application_starting",
        db_path=str(settings.storage.db_path),
        tax_regime=settings.billing.tax_regime,
        low_stock_threshold=settings.billing.low_stock_threshold,
    )

    try:
        applied = await run_migrations()
        pool = await get_pool()
    except Exception as e:
        logger.error("database_init_failed", error=str(e))
        raise
    logger.info("application_started", migrations_applied=len(applied), pool_size=pool.pool_size)

    try:
        yield
    finally:
        await close_pool()
        logger.info("application_stopped")


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()

    app = FastAPI(
        title="BillPro Invoicing API",
        description="Invoice lifecycle with GST tax breakdown and stock reconciliation",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Outermost last: errors are caught inside the logged request
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LoggingMiddleware)
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    setup_exception_handlers(app)

    for router in (health_router, invoices_router, stock_router, products_router, customers_router):
        app.include_router(router)

    return app


app = create_app()


# Container health checks hit this without touching the database
@app.get("/health")
async def root_health() -> dict[str, str]:
    return {"status": "healthy", "version": get_settings().app_version}


def run() -> None:
    """``billpro-api`` entry point."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "billpro.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )


if __name__ == "__main__":
    run()
