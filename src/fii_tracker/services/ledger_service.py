"""Ledger service for transaction management."""

import dataclasses
import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Union

from fii_tracker.core.exceptions import ValidationError, NotFoundError
from fii_tracker.core.timezone import parse_iso_date
from fii_tracker.domain.models import Transaction, TransactionType
from fii_tracker.domain.views import ImportSummary
from fii_tracker.repositories.codec import transaction_to_dict, transaction_from_dict
from fii_tracker.repositories.protocols import KeyValueStore

logger = logging.getLogger(__name__)

TRANSACTIONS_KEY = "transactions"


@dataclass
class TransactionCreate:
    """Input data for creating a transaction."""

    ticker: str
    txn_type: TransactionType
    quantity: Decimal
    price: Decimal
    date: Union[str, date]
    costs: Decimal = Decimal("0")
    notes: Optional[str] = None
    txn_id: Optional[str] = None


@dataclass
class TransactionUpdate:
    """
    Partial update data for editing a transaction.

    None leaves a field unchanged. An empty `notes` string clears the note.
    """

    ticker: Optional[str] = None
    txn_type: Optional[TransactionType] = None
    quantity: Optional[Decimal] = None
    price: Optional[Decimal] = None
    date: Optional[Union[str, date]] = None
    costs: Optional[Decimal] = None
    notes: Optional[str] = None


def normalize_ticker(ticker: Optional[str]) -> str:
    return (ticker or "").strip().upper()


class LedgerService:
    """
    Service for managing the transaction ledger.

    Ledger is the source of truth: an insertion-ordered list of immutable
    transactions persisted under one store key. CRUD only, no derived logic.
    """

    def __init__(self, store: KeyValueStore):
        self._store = store
        self._transactions: list[Transaction] = self._load()

    def _load(self) -> list[Transaction]:
        loaded: list[Transaction] = []
        seen: set[str] = set()
        for raw in self._store.get(TRANSACTIONS_KEY, []) or []:
            try:
                txn = transaction_from_dict(raw)
            except (KeyError, TypeError, ValueError, InvalidOperation):
                logger.warning("Dropping unreadable stored transaction: %r", raw)
                continue
            if txn.txn_id in seen:
                continue
            seen.add(txn.txn_id)
            loaded.append(txn)
        return loaded

    def _save(self, transactions: list[Transaction]) -> None:
        self._store.set(TRANSACTIONS_KEY, [transaction_to_dict(t) for t in transactions])
        self._transactions = transactions

    def list_transactions(self) -> list[Transaction]:
        """All transactions in insertion order."""
        return list(self._transactions)

    def get_transaction(self, txn_id: str) -> Transaction:
        for txn in self._transactions:
            if txn.txn_id == txn_id:
                return txn
        raise NotFoundError("Transaction", txn_id)

    def tickers(self) -> list[str]:
        """Unique tickers in first-seen order."""
        return list(dict.fromkeys(t.ticker for t in self._transactions))

    def add_transaction(self, data: TransactionCreate) -> Transaction:
        """
        Append a new transaction to the ledger.

        Validates input and rejects duplicate ids with ValidationError.
        """
        transaction = self._build(data)
        if any(t.txn_id == transaction.txn_id for t in self._transactions):
            raise ValidationError(f"Transaction id already exists: {transaction.txn_id}")
        self._save(self._transactions + [transaction])
        return transaction

    def update_transaction(self, txn_id: str, patch: TransactionUpdate) -> Transaction:
        """Replace a transaction with a patched copy (position in the ledger is kept)."""
        current = self.get_transaction(txn_id)

        changes = {
            name: value
            for name, value in dataclasses.asdict(patch).items()
            if value is not None
        }
        if "ticker" in changes:
            changes["ticker"] = normalize_ticker(changes["ticker"])
        if "date" in changes:
            changes["date"] = parse_iso_date(changes["date"])
        if "notes" in changes and not changes["notes"].strip():
            changes["notes"] = None
        try:
            for name in ("quantity", "price", "costs"):
                if name in changes:
                    changes[name] = Decimal(str(changes[name]))
            updated = dataclasses.replace(current, **changes)
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid transaction data: {exc}") from None
        self._validate(updated)

        self._save([updated if t.txn_id == txn_id else t for t in self._transactions])
        return updated

    def delete_transaction(self, txn_id: str) -> None:
        self.get_transaction(txn_id)
        self._save([t for t in self._transactions if t.txn_id != txn_id])

    def import_transactions(self, items: Iterable[Union[TransactionCreate, Transaction]]) -> ImportSummary:
        """
        Append transactions whose id is not already in the ledger.

        Invalid rows are reported in the summary and never abort the batch.
        """
        summary = ImportSummary()
        known = {t.txn_id for t in self._transactions}
        to_add: list[Transaction] = []

        for index, item in enumerate(items, start=1):
            try:
                if isinstance(item, Transaction):
                    txn = dataclasses.replace(
                        item, ticker=normalize_ticker(item.ticker), date=parse_iso_date(item.date)
                    )
                    self._validate(txn)
                else:
                    txn = self._build(item)
            except ValidationError as exc:
                summary.error_count += 1
                summary.errors.append(f"Row {index}: {exc.message}")
                continue

            if txn.txn_id in known:
                summary.skipped_count += 1
                continue
            known.add(txn.txn_id)
            to_add.append(txn)

        if to_add:
            self._save(self._transactions + to_add)
        summary.imported_count = len(to_add)
        return summary

    def clear(self) -> None:
        self._save([])

    def _build(self, data: TransactionCreate) -> Transaction:
        try:
            transaction = Transaction(
                txn_id=data.txn_id or str(uuid.uuid4()),
                ticker=normalize_ticker(data.ticker),
                txn_type=TransactionType(data.txn_type),
                quantity=Decimal(str(data.quantity)),
                price=Decimal(str(data.price)),
                date=parse_iso_date(data.date),
                costs=Decimal(str(data.costs if data.costs is not None else "0")),
                notes=data.notes,
            )
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise ValidationError(f"Invalid transaction data: {exc}") from None
        self._validate(transaction)
        return transaction

    @staticmethod
    def _validate(txn: Transaction) -> None:
        """Validate a fully built transaction."""
        if not txn.ticker:
            raise ValidationError("Transaction requires a ticker")
        if not txn.txn_id:
            raise ValidationError("Transaction requires an id")
        if not txn.quantity.is_finite() or txn.quantity <= 0:
            raise ValidationError(f"{txn.txn_type.value} requires quantity > 0")
        if not txn.price.is_finite() or txn.price < 0:
            raise ValidationError(f"{txn.txn_type.value} requires price >= 0")
        if not txn.costs.is_finite() or txn.costs < 0:
            raise ValidationError("Costs cannot be negative")
