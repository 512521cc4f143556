"""Stock preview endpoints."""

from fastapi import APIRouter, Depends

from billpro.api.dependencies import get_check_stock_use_case
from billpro.application.dto.requests import StockCheckRequest
from billpro.application.dto.responses import ErrorResponse, StockReportResponse
from billpro.application.use_cases import CheckStockUseCase

router = APIRouter(prefix="/api/stock", tags=["stock"])


@router.post(
    "/check",
    response_model=StockReportResponse,
    responses={400: {"model": ErrorResponse}},
)
async def check_stock(
    request: StockCheckRequest,
    use_case: CheckStockUseCase = Depends(get_check_stock_use_case),
) -> StockReportResponse:
    """
    Advisory stock check for an invoice being composed.

    Nothing is reserved; the same lines are checked again when the invoice is
    saved.
    """
    return await use_case.execute(request)
