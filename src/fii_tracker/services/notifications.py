"""Pull-based portfolio notifications derived from positions."""

import zlib
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable

from fii_tracker.domain.models import NotificationType
from fii_tracker.domain.views import Notification, Position

HUNDRED = Decimal("100")
MONTHS_PER_YEAR = Decimal("12")
MIN_PROVISION_PER_SHARE = Decimal("0.01")
DROP_THRESHOLD = Decimal("0.95")
GAIN_THRESHOLD = Decimal("1.10")
HIGH_PVP = Decimal("1.15")


def notification_id(title: str, period: str) -> int:
    """Stable id: same title in the same period gives the same id."""
    return zlib.crc32(f"{title}|{period}".encode("utf-8"))


def _pct(value: Decimal) -> str:
    return f"{value:.1f}"


def generate_notifications(positions: Iterable[Position], now: datetime) -> list[Notification]:
    """
    Notifications for the current positions, newest first.

    - dividend provision: estimated monthly dividend (price x DY / 12) above R$ 0.01
    - opportunity: price more than 5% below the average cost
    - gain: price more than 10% above the average cost
    - high P/VP: P/VP above 1.15
    """
    notifications: list[Notification] = []

    for p in positions:
        price = p.current_price or Decimal("0")
        avg = p.weighted_average_cost

        if p.dy and p.dy > 0:
            per_share = price * (p.dy / HUNDRED) / MONTHS_PER_YEAR
            if per_share > MIN_PROVISION_PER_SHARE:
                title = f"Provisão: {p.ticker}"
                notifications.append(
                    Notification(
                        id=notification_id(title, now.strftime("%Y-%m")),
                        type=NotificationType.DIVIDEND,
                        title=title,
                        description=(
                            f"Estimativa de R$ {per_share:.2f}/cota com base no DY de {_pct(p.dy)}%."
                        ),
                        date=now,
                        related_ticker=p.ticker,
                    )
                )

        if price > 0 and avg > 0:
            if price < avg * DROP_THRESHOLD:
                title = f"Oportunidade: {p.ticker}"
                drop = (avg - price) / avg * HUNDRED
                notifications.append(
                    Notification(
                        id=notification_id(title, now.strftime("%Y-%m-%d")),
                        type=NotificationType.PRICE,
                        title=title,
                        description=f"Preço atual está {_pct(drop)}% abaixo do seu preço médio.",
                        date=now - timedelta(hours=1),
                        related_ticker=p.ticker,
                    )
                )
            if price > avg * GAIN_THRESHOLD:
                title = f"Valorização: {p.ticker}"
                gain = (price - avg) / avg * HUNDRED
                notifications.append(
                    Notification(
                        id=notification_id(title, now.strftime("%Y-%m-%d")),
                        type=NotificationType.PRICE,
                        title=title,
                        description=f"Seu ativo valorizou {_pct(gain)}% em relação ao custo.",
                        date=now - timedelta(hours=2),
                        related_ticker=p.ticker,
                    )
                )

        if p.pvp and p.pvp > HIGH_PVP:
            title = f"Atenção: {p.ticker}"
            notifications.append(
                Notification(
                    id=notification_id(title, _pct(p.pvp)),
                    type=NotificationType.NEWS,
                    title=title,
                    description=(
                        f"O P/VP está em {p.pvp:.2f}, indicando que o ativo pode estar caro."
                    ),
                    date=now - timedelta(days=1),
                    related_ticker=p.ticker,
                )
            )

    return sorted(notifications, key=lambda n: n.date, reverse=True)
