#!/usr/bin/env python3
"""
Generate a realistic FII ledger for the last 6 months.
Simulates monthly contributions split across a few funds plus some sells.
Writes into the configured data directory (FII_DATA_DIR / FII_DATABASE_URL).
"""

import random
import sys
from datetime import date, timedelta
from decimal import Decimal

from fii_tracker.app_context import AppContext
from fii_tracker.domain.models import TransactionType
from fii_tracker.services import TransactionCreate

# Funds with approximate prices
FUNDS = [
    ("MXRF11", 10.40),
    ("HGLG11", 160.00),
    ("KNRI11", 158.00),
    ("VISC11", 112.00),
    ("XPML11", 110.00),
    ("CPTS11", 8.00),
]

MONTHLY_CONTRIBUTION = 3000
BROKERAGE_FEE = Decimal("4.90")


def _next_business_day(day: date) -> date:
    while day.weekday() >= 5:
        day += timedelta(days=1)
    return day


def build_transactions(today: date, months: int = 6, seed: int = 42) -> list[TransactionCreate]:
    """Monthly buys on the first business day, plus a few partial sells."""
    rng = random.Random(seed)
    transactions: list[TransactionCreate] = []
    held = {ticker: Decimal("0") for ticker, _ in FUNDS}

    for offset in range(months, 0, -1):
        first = (today.replace(day=1) - timedelta(days=31 * (offset - 1))).replace(day=1)
        trade_day = _next_business_day(first)
        if trade_day > today:
            continue
        for ticker, base_price in rng.sample(FUNDS, 2):
            price = Decimal(str(round(base_price * rng.uniform(0.95, 1.05), 2)))
            quantity = Decimal(int(MONTHLY_CONTRIBUTION / 2 / float(price)))
            if quantity <= 0:
                continue
            transactions.append(
                TransactionCreate(
                    ticker=ticker,
                    txn_type=TransactionType.BUY,
                    quantity=quantity,
                    price=price,
                    date=trade_day,
                    costs=BROKERAGE_FEE,
                    txn_id=f"buy_{ticker}_{trade_day.isoformat()}",
                    notes="Monthly contribution",
                )
            )
            held[ticker] += quantity

    for ticker, base_price in FUNDS:
        if held[ticker] < 10 or rng.random() < 0.5:
            continue
        sell_day = _next_business_day(today - timedelta(days=rng.randint(5, 30)))
        quantity = (held[ticker] * Decimal("0.3")).quantize(Decimal("1"))
        price = Decimal(str(round(base_price * rng.uniform(1.02, 1.10), 2)))
        transactions.append(
            TransactionCreate(
                ticker=ticker,
                txn_type=TransactionType.SELL,
                quantity=quantity,
                price=price,
                date=sell_day,
                txn_id=f"sell_{ticker}_{sell_day.isoformat()}",
                notes="Take profit",
            )
        )
        held[ticker] -= quantity

    transactions.sort(key=lambda t: t.date)
    return transactions


def generate_realistic_data() -> None:
    """Generate and import the demo ledger."""
    context = AppContext()
    context.initialize()
    portfolio = context.portfolio

    today = date.today()
    transactions = build_transactions(today)

    print(f"Importing {len(transactions)} transactions")
    print("=" * 60)
    summary = portfolio.import_transactions(transactions)
    print(f"✓ Imported: {summary.imported_count}")
    print(f"  Skipped (already present): {summary.skipped_count}")
    for error in summary.errors:
        print(f"✗ {error}")

    print("\n" + "=" * 60)
    print("SUMMARY")
    print("=" * 60)
    for position in portfolio.get_positions():
        print(
            f"  {position.ticker}: {position.quantity} cotas @ R$ {position.weighted_average_cost:.2f}"
        )

    context.close()
    print("\n✓ Test data generation complete!")
    print("\nYou can now:")
    print("  - Refresh market data: POST /market-data/refresh")
    print("  - View positions: GET /portfolio/positions")
    print("  - View income: GET /portfolio/income")


if __name__ == "__main__":
    try:
        generate_realistic_data()
    except Exception as e:
        print(f"\n✗ Error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)
