"""Application context for in-process service management.

Holds the process-wide services. The market data syncer keeps the refresh
guard and the cache in memory, so it must be shared by every caller; the
API resolves it from here instead of building services per request.
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

from fii_tracker.config.settings import Settings, get_settings, set_settings
from fii_tracker.core.retry import RetryPolicy
from fii_tracker.providers import (
    FundamentalsSource,
    QuoteSource,
    StubFundamentalsSource,
    StubQuoteSource,
    YFinanceFundamentalsSource,
    YFinanceQuoteSource,
)
from fii_tracker.repositories.protocols import KeyValueStore
from fii_tracker.repositories.sqlalchemy import (
    SqlAlchemyKeyValueStore,
    get_session,
    init_db,
    init_db_with_path,
    reset_database,
)
from fii_tracker.services import (
    LedgerService,
    MarketDataSyncer,
    PortfolioService,
    RefreshScheduler,
)


class AppContext:
    """
    Application context providing in-process access to all services.

    Collaborators can be injected (tests pass an in-memory store, fake
    sources and a fixed clock); anything not injected is built from settings
    on first use.
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        store: Optional[KeyValueStore] = None,
        quote_source: Optional[QuoteSource] = None,
        fundamentals_source: Optional[FundamentalsSource] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._data_dir = data_dir
        self._session = None
        self._store = store
        self._quote_source = quote_source
        self._fundamentals_source = fundamentals_source
        self._clock = clock

        # Service instances (lazy initialized)
        self._ledger_service: Optional[LedgerService] = None
        self._syncer: Optional[MarketDataSyncer] = None
        self._portfolio_service: Optional[PortfolioService] = None
        self._scheduler: Optional[RefreshScheduler] = None

    def initialize(self, data_dir: Optional[Path] = None) -> None:
        """
        Initialize or reinitialize the database for a data directory.

        Args:
            data_dir: Data directory path. Uses the configured one if not provided.
        """
        if data_dir:
            self._data_dir = data_dir
            set_settings(Settings(data_dir=self._data_dir))
        settings = get_settings()

        reset_database()
        if settings.database_url:
            init_db()
        else:
            init_db_with_path(settings.get_data_dir() / "fii_tracker.db")

        # Reset service instances to force recreation
        self.close()
        self._store = None
        self._ledger_service = None
        self._syncer = None
        self._portfolio_service = None
        self._scheduler = None

    @property
    def store(self) -> KeyValueStore:
        if self._store is None:
            if self._session is None:
                self._session = get_session()
            self._store = SqlAlchemyKeyValueStore(self._session)
        return self._store

    def _retry_policy(self, settings: Settings) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            initial_delay=settings.retry_initial_delay_seconds,
        )

    @property
    def quote_source(self) -> QuoteSource:
        if self._quote_source is None:
            settings = get_settings()
            if settings.use_stub_providers:
                self._quote_source = StubQuoteSource()
            else:
                self._quote_source = YFinanceQuoteSource(
                    suffix=settings.quote_ticker_suffix,
                    retry_policy=self._retry_policy(settings),
                )
        return self._quote_source

    @property
    def fundamentals_source(self) -> FundamentalsSource:
        if self._fundamentals_source is None:
            settings = get_settings()
            if settings.use_stub_providers:
                self._fundamentals_source = StubFundamentalsSource()
            else:
                self._fundamentals_source = YFinanceFundamentalsSource(
                    suffix=settings.quote_ticker_suffix,
                    retry_policy=self._retry_policy(settings),
                )
        return self._fundamentals_source

    # Service accessors
    @property
    def ledger(self) -> LedgerService:
        """Get the LedgerService instance."""
        if self._ledger_service is None:
            self._ledger_service = LedgerService(self.store)
        return self._ledger_service

    @property
    def syncer(self) -> MarketDataSyncer:
        """Get the MarketDataSyncer instance."""
        if self._syncer is None:
            settings = get_settings()
            self._syncer = MarketDataSyncer(
                store=self.store,
                quote_source=self.quote_source,
                fundamentals_source=self.fundamentals_source,
                quote_ttl=timedelta(seconds=settings.quote_ttl_seconds),
                fundamentals_ttl=timedelta(seconds=settings.fundamentals_ttl_seconds),
                price_history_limit=settings.price_history_limit,
                clock=self._clock,
            )
        return self._syncer

    @property
    def portfolio(self) -> PortfolioService:
        """Get the PortfolioService instance."""
        if self._portfolio_service is None:
            self._portfolio_service = PortfolioService(
                ledger=self.ledger,
                syncer=self.syncer,
                clock=self._clock,
            )
        return self._portfolio_service

    @property
    def scheduler(self) -> RefreshScheduler:
        """Get the RefreshScheduler instance."""
        if self._scheduler is None:
            settings = get_settings()
            self._scheduler = RefreshScheduler(
                refresh=self.portfolio.refresh,
                clock=self._clock,
                open_hour=settings.market_open_hour,
                close_hour=settings.market_close_hour,
            )
        return self._scheduler

    def close(self) -> None:
        """Clean up resources."""
        if self._session:
            self._session.close()
            self._session = None


# Global application context (singleton for the API process)
_app_context: Optional[AppContext] = None


def get_app_context() -> AppContext:
    """Get or create the global application context."""
    global _app_context
    if _app_context is None:
        _app_context = AppContext()
    return _app_context


def set_app_context(context: Optional[AppContext]) -> None:
    """Set (or clear) the global application context."""
    global _app_context
    _app_context = context
