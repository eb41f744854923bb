"""
Portfolio facade.

Everything derived (positions, income, evolution, notifications) is
recomputed on read from the ledger and the current market data snapshot;
nothing derived is cached.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional, Union

from fii_tracker.core.timezone import now_market, today_iso
from fii_tracker.domain.models import ApiUsageStats, RefreshState, Transaction
from fii_tracker.domain.views import (
    EvolutionPoint,
    ImportSummary,
    IncomeReport,
    MonthlyIncome,
    Notification,
    PortfolioEvolutionPoint,
    PortfolioSummary,
    Position,
    RefreshOutcome,
)
from fii_tracker.services.dividend_attributor import income_report
from fii_tracker.services.evolution import portfolio_evolution, reconstruct_evolution
from fii_tracker.services.ledger_service import (
    LedgerService,
    TransactionCreate,
    TransactionUpdate,
)
from fii_tracker.services.market_data_service import MarketDataSyncer
from fii_tracker.services.notifications import generate_notifications
from fii_tracker.services.portfolio_engine import (
    average_price_before,
    build_positions,
    portfolio_summary,
)

logger = logging.getLogger(__name__)


class PortfolioService:
    """Single entry point for the ledger, market data and derived views."""

    def __init__(
        self,
        ledger: LedgerService,
        syncer: MarketDataSyncer,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.ledger = ledger
        self.syncer = syncer
        self._clock = clock or now_market

    # Ledger

    def list_transactions(self) -> list[Transaction]:
        return self.ledger.list_transactions()

    def get_transaction(self, txn_id: str) -> Transaction:
        return self.ledger.get_transaction(txn_id)

    def add_transaction(self, data: TransactionCreate) -> Transaction:
        return self.ledger.add_transaction(data)

    def update_transaction(self, txn_id: str, patch: TransactionUpdate) -> Transaction:
        return self.ledger.update_transaction(txn_id, patch)

    def delete_transaction(self, txn_id: str) -> None:
        self.ledger.delete_transaction(txn_id)

    def import_transactions(
        self, items: Iterable[Union[TransactionCreate, Transaction]]
    ) -> ImportSummary:
        summary = self.ledger.import_transactions(items)
        logger.info(
            "Imported %d transactions (%d skipped, %d errors)",
            summary.imported_count,
            summary.skipped_count,
            summary.error_count,
        )
        return summary

    def average_price_for_transaction(self, txn_id: str) -> Decimal:
        """Average cost of the ticker held right before this transaction."""
        target = self.ledger.get_transaction(txn_id)
        return average_price_before(self.ledger.list_transactions(), target)

    # Derived views

    def get_positions(self) -> list[Position]:
        return build_positions(self.ledger.list_transactions(), self.syncer.get_market_data())

    def get_summary(self) -> PortfolioSummary:
        return portfolio_summary(self.get_positions())

    def get_income_report(self) -> IncomeReport:
        dividends = {
            ticker: record.dividend_events()
            for ticker, record in self.syncer.get_market_data().items()
        }
        return income_report(self.ledger.list_transactions(), dividends)

    def get_monthly_income(self) -> list[MonthlyIncome]:
        return self.get_income_report().monthly

    def _evolution_series(self):
        market_data = self.syncer.get_market_data()
        current_prices = {
            ticker: record.current_price
            for ticker, record in market_data.items()
            if record.current_price is not None
        }
        return reconstruct_evolution(
            self.ledger.list_transactions(),
            self.syncer.price_histories(),
            today=today_iso(self._clock()),
            current_prices=current_prices,
        )

    def get_evolution(self) -> dict[str, list[EvolutionPoint]]:
        """Per-ticker value series."""
        return {ticker: series.points() for ticker, series in self._evolution_series().items()}

    def get_portfolio_evolution(self) -> list[PortfolioEvolutionPoint]:
        return portfolio_evolution(self._evolution_series())

    def get_notifications(self) -> list[Notification]:
        return generate_notifications(self.get_positions(), self._clock())

    # Market data

    @property
    def refresh_state(self) -> RefreshState:
        return self.syncer.state

    async def refresh(
        self, force: bool = False, silent: bool = False, lite: bool = False
    ) -> RefreshOutcome:
        return await self.syncer.refresh(
            self.ledger.tickers(), force=force, silent=silent, lite=lite
        )

    async def refresh_single(self, ticker: str) -> RefreshOutcome:
        return await self.syncer.refresh_single(ticker)

    def should_refresh_on_mount(self) -> bool:
        return self.syncer.should_refresh_on_mount(bool(self.ledger.list_transactions()))

    def get_usage_stats(self) -> ApiUsageStats:
        return self.syncer.get_usage_stats()

    def reset_usage_stats(self) -> None:
        self.syncer.reset_usage_stats()

    def clear_cache(self) -> None:
        self.syncer.clear_cache()

    def reset(self) -> None:
        """Wipe the ledger, the market data cache and the usage counters."""
        self.ledger.clear()
        self.syncer.clear_cache()
        self.syncer.reset_usage_stats()
        logger.info("Portfolio reset")
