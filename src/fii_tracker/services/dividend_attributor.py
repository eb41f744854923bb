"""Dividend attribution: who held the shares on the ex-date, and when the cash arrived."""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Mapping

from fii_tracker.core.timezone import month_key
from fii_tracker.domain.models import DividendEvent, Transaction, sort_transactions
from fii_tracker.domain.views import IncomeReport, MonthlyIncome, PayerSummary

ZERO = Decimal("0")
MONTHLY_WINDOW = 12


def held_on_ex_date(sorted_transactions: Iterable[Transaction], ex_date: str) -> Decimal:
    """
    Shares entitled to a dividend: net quantity of transactions dated on or
    before the ex-date, floored at zero. Input must be one ticker, sorted.
    """
    held = ZERO
    for txn in sorted_transactions:
        if txn.date > ex_date:
            break
        held += txn.signed_quantity
    return max(ZERO, held)


def _group_by_ticker(transactions: Iterable[Transaction]) -> dict[str, list[Transaction]]:
    grouped: dict[str, list[Transaction]] = defaultdict(list)
    for txn in sort_transactions(transactions):
        grouped[txn.ticker].append(txn)
    return grouped


def _to_series(buckets: Mapping[str, Decimal]) -> list[MonthlyIncome]:
    return [MonthlyIncome(month=key, total=buckets[key]) for key in sorted(buckets)]


def income_report(
    transactions: Iterable[Transaction],
    dividends_by_ticker: Mapping[str, Iterable[DividendEvent]],
) -> IncomeReport:
    """
    Attribute every dividend event to the holdings on its ex-date.

    Paid events are bucketed by the payment month; provisioned (announced,
    unpaid) events only feed the ticker's projected amount.
    """
    by_ticker = _group_by_ticker(transactions)
    monthly: dict[str, Decimal] = defaultdict(lambda: ZERO)
    annual: dict[str, dict[str, Decimal]] = defaultdict(lambda: defaultdict(lambda: ZERO))
    total_received = ZERO
    payers: list[PayerSummary] = []

    for ticker in sorted(by_ticker):
        history = sorted(dividends_by_ticker.get(ticker) or [], key=lambda e: e.ex_date)
        if not history:
            continue
        txns = by_ticker[ticker]
        payer = PayerSummary(ticker=ticker)
        paid_months: set[str] = set()

        for event in history:
            if event.value_per_share <= 0:
                continue
            held = held_on_ex_date(txns, event.ex_date)
            if held <= 0:
                continue
            amount = held * event.value_per_share

            if event.is_provisioned:
                payer.projected_amount += amount
                continue

            key = month_key(event.payment_date)
            monthly[key] += amount
            annual[event.payment_date[:4]][ticker] += amount
            total_received += amount
            payer.total_paid += amount
            payer.count += 1
            paid_months.add(key)

        latest = history[-1]
        provisioned = sorted(
            (e for e in history if e.is_provisioned), key=lambda e: e.payment_date
        )
        payer.last_ex_date = latest.ex_date
        payer.is_provisioned = bool(provisioned)
        payer.next_payment_date = provisioned[0].payment_date if provisioned else latest.payment_date
        if paid_months:
            payer.average_monthly = payer.total_paid / len(paid_months)
        payers.append(payer)

    full_history = _to_series(monthly)
    return IncomeReport(
        monthly=full_history[-MONTHLY_WINDOW:],
        full_history=full_history,
        annual_distribution={year: dict(values) for year, values in sorted(annual.items())},
        total_received=total_received,
        payers=payers,
    )


def monthly_income(
    transactions: Iterable[Transaction],
    dividends_by_ticker: Mapping[str, Iterable[DividendEvent]],
) -> list[MonthlyIncome]:
    """Income per payment month (YYYY-MM), the 12 most recent populated months, ascending."""
    return income_report(transactions, dividends_by_ticker).monthly
