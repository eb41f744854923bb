"""Portfolio views: positions, income, evolution and notifications."""

from fastapi import APIRouter, Depends, Response, status

from fii_tracker.api.deps import get_portfolio_service
from fii_tracker.api.schemas import (
    EvolutionPointResponse,
    IncomeReportResponse,
    MonthlyIncomeResponse,
    NotificationResponse,
    PortfolioEvolutionPointResponse,
    PortfolioSummaryResponse,
    PositionResponse,
    PositionsResponse,
    TickerEvolutionResponse,
)
from fii_tracker.services import PortfolioService

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


@router.get("/positions", response_model=PositionsResponse)
async def get_positions(
    service: PortfolioService = Depends(get_portfolio_service),
) -> PositionsResponse:
    """Open positions with cached market data."""
    return PositionsResponse(
        positions=[PositionResponse.model_validate(p) for p in service.get_positions()]
    )


@router.get("/summary", response_model=PortfolioSummaryResponse)
async def get_summary(
    service: PortfolioService = Depends(get_portfolio_service),
) -> PortfolioSummaryResponse:
    return PortfolioSummaryResponse.model_validate(service.get_summary())


@router.get("/income", response_model=IncomeReportResponse)
async def get_income_report(
    service: PortfolioService = Depends(get_portfolio_service),
) -> IncomeReportResponse:
    """Dividend income attributed by ex-date and bucketed by payment month."""
    return IncomeReportResponse.model_validate(service.get_income_report())


@router.get("/income/monthly", response_model=list[MonthlyIncomeResponse])
async def get_monthly_income(
    service: PortfolioService = Depends(get_portfolio_service),
) -> list[MonthlyIncomeResponse]:
    return [MonthlyIncomeResponse.model_validate(m) for m in service.get_monthly_income()]


@router.get("/evolution", response_model=TickerEvolutionResponse)
async def get_evolution(
    service: PortfolioService = Depends(get_portfolio_service),
) -> TickerEvolutionResponse:
    return TickerEvolutionResponse(
        series={
            ticker: [EvolutionPointResponse.model_validate(p) for p in points]
            for ticker, points in service.get_evolution().items()
        }
    )


@router.get("/evolution/total", response_model=list[PortfolioEvolutionPointResponse])
async def get_portfolio_evolution(
    service: PortfolioService = Depends(get_portfolio_service),
) -> list[PortfolioEvolutionPointResponse]:
    return [
        PortfolioEvolutionPointResponse.model_validate(p)
        for p in service.get_portfolio_evolution()
    ]


@router.get("/notifications", response_model=list[NotificationResponse])
async def get_notifications(
    service: PortfolioService = Depends(get_portfolio_service),
) -> list[NotificationResponse]:
    return [NotificationResponse.model_validate(n) for n in service.get_notifications()]


@router.post("/reset", status_code=status.HTTP_204_NO_CONTENT)
async def reset_portfolio(
    service: PortfolioService = Depends(get_portfolio_service),
) -> Response:
    """Wipe the ledger, the market data cache and the usage counters."""
    service.reset()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
