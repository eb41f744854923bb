"""Transaction ledger endpoints."""

from fastapi import APIRouter, Depends, Response, status

from fii_tracker.api.deps import get_portfolio_service
from fii_tracker.api.schemas import (
    AveragePriceResponse,
    ImportSummaryResponse,
    TransactionCreateRequest,
    TransactionListResponse,
    TransactionResponse,
    TransactionUpdateRequest,
)
from fii_tracker.services import PortfolioService, TransactionCreate, TransactionUpdate

router = APIRouter(prefix="/transactions", tags=["transactions"])


def _to_create(data: TransactionCreateRequest) -> TransactionCreate:
    return TransactionCreate(
        ticker=data.ticker,
        txn_type=data.txn_type,
        quantity=data.quantity,
        price=data.price,
        date=data.date,
        costs=data.costs,
        notes=data.notes,
        txn_id=data.txn_id,
    )


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    service: PortfolioService = Depends(get_portfolio_service),
) -> TransactionListResponse:
    """List the ledger in insertion order."""
    items = [TransactionResponse.from_domain(t) for t in service.list_transactions()]
    return TransactionListResponse(items=items, total=len(items))


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    data: TransactionCreateRequest,
    service: PortfolioService = Depends(get_portfolio_service),
) -> TransactionResponse:
    """Append a BUY or SELL to the ledger."""
    return TransactionResponse.from_domain(service.add_transaction(_to_create(data)))


@router.post("/import", response_model=ImportSummaryResponse, status_code=status.HTTP_201_CREATED)
async def import_transactions(
    items: list[TransactionCreateRequest],
    service: PortfolioService = Depends(get_portfolio_service),
) -> ImportSummaryResponse:
    """
    Bulk-append transactions.

    Rows whose id already exists are skipped; invalid rows are reported
    without aborting the batch.
    """
    summary = service.import_transactions(_to_create(item) for item in items)
    return ImportSummaryResponse.model_validate(summary)


@router.get("/{txn_id}", response_model=TransactionResponse)
async def get_transaction(
    txn_id: str,
    service: PortfolioService = Depends(get_portfolio_service),
) -> TransactionResponse:
    return TransactionResponse.from_domain(service.get_transaction(txn_id))


@router.patch("/{txn_id}", response_model=TransactionResponse)
async def update_transaction(
    txn_id: str,
    data: TransactionUpdateRequest,
    service: PortfolioService = Depends(get_portfolio_service),
) -> TransactionResponse:
    """Partially update a transaction; unspecified fields are kept."""
    patch = TransactionUpdate(**data.model_dump(exclude_unset=True))
    return TransactionResponse.from_domain(service.update_transaction(txn_id, patch))


@router.delete("/{txn_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction(
    txn_id: str,
    service: PortfolioService = Depends(get_portfolio_service),
) -> Response:
    service.delete_transaction(txn_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{txn_id}/average-price", response_model=AveragePriceResponse)
async def average_price(
    txn_id: str,
    service: PortfolioService = Depends(get_portfolio_service),
) -> AveragePriceResponse:
    """Weighted-average cost of the ticker held right before this transaction."""
    return AveragePriceResponse(
        txn_id=txn_id, average_price=service.average_price_for_transaction(txn_id)
    )
