"""Product catalog endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from billpro.api.dependencies import get_prod_store
from billpro.application.dto.requests import CreateProductRequest
from billpro.application.dto.responses import (
    ErrorResponse,
    ProductListResponse,
    ProductResponse,
    StockMovementResponse,
)
from billpro.core.entities.product import Product
from billpro.infrastructure.storage.sqlite import SQLiteProductStore

router = APIRouter(prefix="/api/products", tags=["products"])


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_product(
    request: CreateProductRequest,
    store: SQLiteProductStore = Depends(get_prod_store),
) -> ProductResponse:
    """Create a product with its opening stock."""
    data = request.model_dump(exclude_none=True)
    product = await store.create(Product(**data))
    return ProductResponse.from_entity(product)


@router.get("", response_model=ProductListResponse)
async def list_products(
    limit: int = 100,
    offset: int = 0,
    store: SQLiteProductStore = Depends(get_prod_store),
) -> ProductListResponse:
    """List products with current stock."""
    products = await store.list_products(limit=limit, offset=offset)
    return ProductListResponse(
        products=[ProductResponse.from_entity(p) for p in products],
        total=len(products),
    )


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_product(
    product_id: str,
    store: SQLiteProductStore = Depends(get_prod_store),
) -> ProductResponse:
    """Get a product by ID."""
    product = await store.get(product_id)
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product not found: {product_id}",
        )
    return ProductResponse.from_entity(product)


@router.get("/{product_id}/movements", response_model=list[StockMovementResponse])
async def list_product_movements(
    product_id: str,
    limit: int = 100,
    store: SQLiteProductStore = Depends(get_prod_store),
) -> list[StockMovementResponse]:
    """Stock audit trail for a product, oldest first."""
    movements = await store.list_movements(product_id=product_id, limit=limit)
    return [StockMovementResponse.from_entity(m) for m in movements]
