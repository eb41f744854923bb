"""Service layer - business logic orchestration."""

from fii_tracker.services.ledger_service import LedgerService, TransactionCreate, TransactionUpdate
from fii_tracker.services.market_data_service import MarketDataSyncer
from fii_tracker.services.portfolio_service import PortfolioService
from fii_tracker.services.scheduler import Environment, RefreshScheduler

__all__ = [
    "LedgerService",
    "TransactionCreate",
    "TransactionUpdate",
    "MarketDataSyncer",
    "PortfolioService",
    "Environment",
    "RefreshScheduler",
]
