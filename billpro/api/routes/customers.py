"""Customer endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from billpro.api.dependencies import get_cust_store
from billpro.application.dto.requests import CreateCustomerRequest
from billpro.application.dto.responses import (
    CustomerListResponse,
    CustomerResponse,
    ErrorResponse,
)
from billpro.core.entities.customer import Customer
from billpro.infrastructure.storage.sqlite import SQLiteCustomerStore

router = APIRouter(prefix="/api/customers", tags=["customers"])


@router.post(
    "",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_customer(
    request: CreateCustomerRequest,
    store: SQLiteCustomerStore = Depends(get_cust_store),
) -> CustomerResponse:
    customer = await store.create(Customer(**request.model_dump(exclude_none=True)))
    return CustomerResponse.from_entity(customer)


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    limit: int = 100,
    offset: int = 0,
    store: SQLiteCustomerStore = Depends(get_cust_store),
) -> CustomerListResponse:
    customers = await store.list_customers(limit=limit, offset=offset)
    return CustomerListResponse(
        customers=[CustomerResponse.from_entity(c) for c in customers],
        total=len(customers),
    )


@router.get(
    "/{customer_id}",
    response_model=CustomerResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_customer(
    customer_id: str,
    store: SQLiteCustomerStore = Depends(get_cust_store),
) -> CustomerResponse:
    customer = await store.get(customer_id)
    if customer is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Customer not found: {customer_id}",
        )
    return CustomerResponse.from_entity(customer)
