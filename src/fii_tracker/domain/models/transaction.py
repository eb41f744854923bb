"""Transaction domain model."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from fii_tracker.domain.models.enums import TransactionType


@dataclass(frozen=True)
class Transaction:
    """
    Ledger transaction entry (source of truth).

    Immutable: edits go through the ledger, which stores a replaced copy.
    `date` is an ISO calendar date (YYYY-MM-DD) so it sorts lexicographically.
    `costs` are brokerage fees added to the cost basis of a buy.
    """

    txn_id: str
    ticker: str
    txn_type: TransactionType
    quantity: Decimal
    price: Decimal
    date: str
    costs: Decimal = field(default_factory=lambda: Decimal("0"))
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.txn_type, str):
            object.__setattr__(self, "txn_type", TransactionType(self.txn_type))

    @property
    def is_buy(self) -> bool:
        return self.txn_type == TransactionType.BUY

    @property
    def signed_quantity(self) -> Decimal:
        """Quantity with sign: positive for buys, negative for sells."""
        return self.quantity if self.is_buy else -self.quantity

    @property
    def gross_amount(self) -> Decimal:
        """quantity x price + costs."""
        return self.quantity * self.price + self.costs


def sort_key(transaction: Transaction) -> tuple[str, int]:
    """Chronological order; on the same date buys are applied before sells."""
    return (transaction.date, 0 if transaction.is_buy else 1)


def sort_transactions(transactions) -> list[Transaction]:
    """Return a new list sorted by date ascending (stable for equal keys)."""
    return sorted(transactions, key=sort_key)
