"""Portfolio value evolution rebuilt from the ledger and price snapshots."""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Iterator, Mapping, Optional, Sequence

from fii_tracker.domain.models import PricePoint, Transaction, sort_transactions
from fii_tracker.domain.views import EvolutionPoint, PortfolioEvolutionPoint
from fii_tracker.services.portfolio_engine import PositionMetrics

ZERO = Decimal("0")


class EvolutionSeries:
    """
    Value of one ticker's holding over time.

    Points exist on every transaction date and every snapshot date from the
    first transaction through `today` (always the last point). The price used
    is the latest snapshot on or before the point's date; before any snapshot
    the average cost stands in. Iterating again replays from the start.
    """

    def __init__(
        self,
        ticker: str,
        transactions: Sequence[Transaction],
        price_history: Sequence[PricePoint],
        today: str,
        current_price: Optional[Decimal] = None,
    ):
        self.ticker = ticker
        self._transactions = sort_transactions(transactions)
        self._prices = sorted(price_history, key=lambda p: p.date)
        self._today = today
        self._current_price = current_price

    def _dates(self) -> list[str]:
        if not self._transactions:
            return []
        start = self._transactions[0].date
        if start > self._today:
            return []
        dates = {t.date for t in self._transactions}
        dates.update(p.date for p in self._prices)
        dates.add(self._today)
        return sorted(d for d in dates if start <= d <= self._today)

    def walk(self) -> Iterator[tuple[str, Decimal, Decimal]]:
        """Yield (date, market value, invested cost) per point."""
        metrics = PositionMetrics()
        txn_index = 0
        price_index = 0
        last_price: Optional[Decimal] = None

        for date in self._dates():
            while txn_index < len(self._transactions) and self._transactions[txn_index].date <= date:
                metrics.apply(self._transactions[txn_index])
                txn_index += 1
            while price_index < len(self._prices) and self._prices[price_index].date <= date:
                last_price = self._prices[price_index].price
                price_index += 1

            price = last_price
            if date == self._today and self._current_price and (
                not self._prices or self._prices[-1].date < date
            ):
                price = self._current_price
            if price is None:
                price = metrics.average_cost

            yield date, metrics.quantity * price, metrics.total_cost

    def __iter__(self) -> Iterator[EvolutionPoint]:
        for date, value, _ in self.walk():
            yield EvolutionPoint(date=date, value=value)

    def points(self) -> list[EvolutionPoint]:
        return list(self)


def reconstruct_evolution(
    transactions: Iterable[Transaction],
    price_history_by_ticker: Mapping[str, Sequence[PricePoint]],
    today: str,
    current_prices: Optional[Mapping[str, Decimal]] = None,
) -> dict[str, EvolutionSeries]:
    """One lazy evolution series per ticker in the ledger."""
    by_ticker: dict[str, list[Transaction]] = defaultdict(list)
    for txn in transactions:
        by_ticker[txn.ticker].append(txn)

    current_prices = current_prices or {}
    return {
        ticker: EvolutionSeries(
            ticker=ticker,
            transactions=txns,
            price_history=price_history_by_ticker.get(ticker) or (),
            today=today,
            current_price=current_prices.get(ticker),
        )
        for ticker, txns in sorted(by_ticker.items())
    }


def portfolio_evolution(series_by_ticker: Mapping[str, EvolutionSeries]) -> list[PortfolioEvolutionPoint]:
    """
    Sum per-ticker series into a portfolio series.

    On dates where a ticker has no point its previous value is carried forward.
    """
    per_ticker = {ticker: list(series.walk()) for ticker, series in series_by_ticker.items()}
    all_dates = sorted({point[0] for points in per_ticker.values() for point in points})

    cursors = {ticker: 0 for ticker in per_ticker}
    last: dict[str, tuple[Decimal, Decimal]] = {}
    result: list[PortfolioEvolutionPoint] = []

    for date in all_dates:
        for ticker, points in per_ticker.items():
            i = cursors[ticker]
            while i < len(points) and points[i][0] <= date:
                last[ticker] = (points[i][1], points[i][2])
                i += 1
            cursors[ticker] = i
        result.append(
            PortfolioEvolutionPoint(
                date=date,
                market_value=sum((v for v, _ in last.values()), ZERO),
                invested=sum((c for _, c in last.values()), ZERO),
            )
        )
    return result
