"""Market data sync endpoints."""

from fastapi import APIRouter, Depends, Query, Response, status

from fii_tracker.api.deps import get_portfolio_service
from fii_tracker.api.schemas import (
    MarketDataResponse,
    RefreshOutcomeResponse,
    RefreshStateResponse,
    UsageStatsResponse,
)
from fii_tracker.core.exceptions import NotFoundError
from fii_tracker.services import PortfolioService

router = APIRouter(prefix="/market-data", tags=["market-data"])


@router.get("", response_model=list[MarketDataResponse])
async def list_market_data(
    service: PortfolioService = Depends(get_portfolio_service),
) -> list[MarketDataResponse]:
    records = service.syncer.get_market_data()
    return [MarketDataResponse.from_domain(records[t]) for t in sorted(records)]


@router.post("/refresh", response_model=RefreshOutcomeResponse)
async def refresh(
    force: bool = Query(False, description="Ignore the quote TTL and refetch fundamentals"),
    silent: bool = Query(False, description="Do not raise the visual refreshing flag"),
    lite: bool = Query(False, description="Quotes only, without price history"),
    service: PortfolioService = Depends(get_portfolio_service),
) -> RefreshOutcomeResponse:
    """
    Refresh market data for every ticker in the ledger.

    Source failures are reported in the outcome, never as an HTTP error.
    """
    outcome = await service.refresh(force=force, silent=silent, lite=lite)
    return RefreshOutcomeResponse.model_validate(outcome)


@router.post("/refresh/{ticker}", response_model=RefreshOutcomeResponse)
async def refresh_single(
    ticker: str,
    service: PortfolioService = Depends(get_portfolio_service),
) -> RefreshOutcomeResponse:
    outcome = await service.refresh_single(ticker)
    return RefreshOutcomeResponse.model_validate(outcome)


@router.get("/state", response_model=RefreshStateResponse)
async def get_state(
    service: PortfolioService = Depends(get_portfolio_service),
) -> RefreshStateResponse:
    return RefreshStateResponse.model_validate(service.refresh_state)


@router.get("/usage", response_model=UsageStatsResponse)
async def get_usage_stats(
    service: PortfolioService = Depends(get_portfolio_service),
) -> UsageStatsResponse:
    return UsageStatsResponse.model_validate(service.get_usage_stats())


@router.delete("/usage", status_code=status.HTTP_204_NO_CONTENT)
async def reset_usage_stats(
    service: PortfolioService = Depends(get_portfolio_service),
) -> Response:
    service.reset_usage_stats()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/cache", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cache(
    service: PortfolioService = Depends(get_portfolio_service),
) -> Response:
    service.clear_cache()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{ticker}", response_model=MarketDataResponse)
async def get_market_data(
    ticker: str,
    service: PortfolioService = Depends(get_portfolio_service),
) -> MarketDataResponse:
    record = service.syncer.get_record(ticker)
    if record is None:
        raise NotFoundError("Market data", ticker.upper())
    return MarketDataResponse.from_domain(record)
