"""Invoice endpoints."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status

from billpro.api.dependencies import (
    get_app_settings,
    get_create_invoice_use_case,
    get_lifecycle_manager,
    get_update_invoice_use_case,
)
from billpro.application.dto.requests import (
    CreateInvoiceRequest,
    StatusUpdateRequest,
    UpdateInvoiceRequest,
)
from billpro.application.dto.responses import (
    ErrorResponse,
    InvoiceListResponse,
    InvoiceResponse,
)
from billpro.application.use_cases import CreateInvoiceUseCase, UpdateInvoiceUseCase
from billpro.config import Settings
from billpro.core.entities.invoice import InvoiceFilter, InvoiceStatus
from billpro.core.services import InvoiceLifecycleManager

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    status_filter: InvoiceStatus | None = Query(default=None, alias="status"),
    customer_id: str | None = None,
    search: str | None = Query(default=None, description="Matches number or customer name"),
    start_date: date | None = None,
    end_date: date | None = None,
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    manager: InvoiceLifecycleManager = Depends(get_lifecycle_manager),
    settings: Settings = Depends(get_app_settings),
) -> InvoiceListResponse:
    """List invoices, newest first."""
    result = await manager.list_invoices(
        InvoiceFilter(
            status=status_filter,
            customer_id=customer_id,
            search=search,
            start=start_date,
            end=end_date,
            page=page,
            limit=limit or settings.billing.default_page_size,
        )
    )
    return InvoiceListResponse(
        invoices=[InvoiceResponse.from_entity(inv) for inv in result.invoices],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.post(
    "",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid invoice"},
        404: {"model": ErrorResponse, "description": "Unknown customer or product"},
        409: {"model": ErrorResponse, "description": "Insufficient stock or number conflict"},
    },
)
async def create_invoice(
    request: CreateInvoiceRequest,
    use_case: CreateInvoiceUseCase = Depends(get_create_invoice_use_case),
) -> InvoiceResponse:
    """Create an invoice and reserve its stock."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_invoice(
    invoice_id: str,
    manager: InvoiceLifecycleManager = Depends(get_lifecycle_manager),
) -> InvoiceResponse:
    """Get an invoice by ID."""
    invoice = await manager.get(invoice_id)
    return InvoiceResponse.from_entity(invoice)


@router.put(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def update_invoice(
    invoice_id: str,
    request: UpdateInvoiceRequest,
    use_case: UpdateInvoiceUseCase = Depends(get_update_invoice_use_case),
) -> InvoiceResponse:
    """Update an invoice; stock follows the change in line items."""
    return await use_case.execute(invoice_id, request)


@router.patch(
    "/{invoice_id}/status",
    response_model=InvoiceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def update_invoice_status(
    invoice_id: str,
    request: StatusUpdateRequest,
    manager: InvoiceLifecycleManager = Depends(get_lifecycle_manager),
) -> InvoiceResponse:
    """Change only the status. Stock is not touched."""
    invoice = await manager.update_status(invoice_id, request.status)
    return InvoiceResponse.from_entity(invoice)


@router.delete(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def delete_invoice(
    invoice_id: str,
    manager: InvoiceLifecycleManager = Depends(get_lifecycle_manager),
) -> InvoiceResponse:
    """Delete an invoice and restore its stock."""
    invoice = await manager.delete(invoice_id)
    return InvoiceResponse.from_entity(invoice)
