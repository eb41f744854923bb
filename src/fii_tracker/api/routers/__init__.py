"""API routers package."""

from fii_tracker.api.routers.transactions import router as transactions_router
from fii_tracker.api.routers.portfolio import router as portfolio_router
from fii_tracker.api.routers.market_data import router as market_data_router

__all__ = [
    "transactions_router",
    "portfolio_router",
    "market_data_router",
]
