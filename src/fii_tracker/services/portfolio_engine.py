"""Portfolio engine for deriving positions from the ledger."""

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from fii_tracker.constants import DEFAULT_SEGMENT, STATIC_FII_SECTORS
from fii_tracker.domain.models import MarketDataRecord, Transaction, sort_transactions
from fii_tracker.domain.views import Position, PortfolioSummary

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass
class PositionMetrics:
    """Running weighted-average-cost state of one ticker."""

    quantity: Decimal = field(default_factory=lambda: ZERO)
    total_cost: Decimal = field(default_factory=lambda: ZERO)
    average_cost: Decimal = field(default_factory=lambda: ZERO)

    def apply(self, txn: Transaction) -> None:
        """
        Apply one transaction.

        A buy adds quantity x price + costs to the cost and recomputes the
        average. A sell removes sold_qty x average from the cost and never
        changes the average; selling more than held is clamped.
        """
        if txn.is_buy:
            self.total_cost += txn.quantity * txn.price + txn.costs
            self.quantity += txn.quantity
            if self.quantity > 0:
                self.average_cost = self.total_cost / self.quantity
            return

        sell_qty = min(txn.quantity, self.quantity)
        if self.quantity > 0:
            self.total_cost -= sell_qty * self.average_cost
            self.quantity -= sell_qty
        if self.quantity <= 0:
            self.quantity = ZERO
            self.total_cost = ZERO
            self.average_cost = ZERO


def aggregate_positions(transactions: Iterable[Transaction]) -> dict[str, PositionMetrics]:
    """
    Replay the ledger into open positions, keyed by ticker.

    Transactions are re-sorted by date; closed positions (quantity 0) are dropped.
    """
    metrics: dict[str, PositionMetrics] = defaultdict(PositionMetrics)
    for txn in sort_transactions(transactions):
        metrics[txn.ticker].apply(txn)
    return {ticker: m for ticker, m in metrics.items() if m.quantity > 0}


def average_price_before(transactions: Iterable[Transaction], target: Transaction) -> Decimal:
    """
    Weighted-average cost of the target's ticker just before the target is applied.

    Returns 0 when nothing was held.
    """
    metrics = PositionMetrics()
    for txn in sort_transactions(t for t in transactions if t.ticker == target.ticker):
        if txn.txn_id == target.txn_id:
            break
        metrics.apply(txn)
    return metrics.average_cost if metrics.quantity > 0 else ZERO


def resolve_segment(ticker: str, record: Optional[MarketDataRecord]) -> str:
    segment = record.sector if record else None
    if not segment or segment == DEFAULT_SEGMENT:
        segment = STATIC_FII_SECTORS.get(ticker.upper())
    return segment or DEFAULT_SEGMENT


def build_positions(
    transactions: Iterable[Transaction],
    market_data: Optional[Mapping[str, MarketDataRecord]] = None,
) -> list[Position]:
    """
    Derive open positions enriched with cached market data.

    Missing market data never raises: price falls back to the average cost
    and yields default to zero.
    """
    market_data = market_data or {}
    positions: list[Position] = []

    for ticker, m in sorted(aggregate_positions(transactions).items()):
        record = market_data.get(ticker)
        price = record.current_price if record and record.current_price else m.average_cost
        dy = record.dy if record else None
        total_invested = m.quantity * m.average_cost

        yield_on_cost = ZERO
        if m.average_cost > 0 and dy and dy > 0:
            yield_on_cost = price * (dy / HUNDRED) / m.average_cost * HUNDRED

        positions.append(
            Position(
                ticker=ticker,
                quantity=m.quantity,
                weighted_average_cost=m.average_cost,
                current_price=price,
                market_value=m.quantity * price,
                total_invested=total_invested,
                segment=resolve_segment(ticker, record),
                dy=dy,
                pvp=record.pvp if record else None,
                yield_on_cost=yield_on_cost,
            )
        )
    return positions


def portfolio_summary(positions: Iterable[Position]) -> PortfolioSummary:
    """Totals, yield on cost and projected annual income across positions."""
    summary = PortfolioSummary()
    for p in positions:
        summary.position_count += 1
        summary.total_invested += p.total_invested
        summary.total_market_value += p.market_value or ZERO
        if p.dy and p.current_price:
            summary.projected_annual_income += p.quantity * p.current_price * (p.dy / HUNDRED)

    if summary.total_invested > 0:
        summary.yield_on_cost = summary.projected_annual_income / summary.total_invested * HUNDRED
    return summary
