"""Portfolio valuation and alert evaluation."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable, Mapping
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from ..market.cache import PriceCache
from ..models import (
    AlertDirection,
    Holding,
    HoldingWithPrice,
    PortfolioSnapshot,
    PriceAlert,
    PriceKey,
    utcnow,
)
from ..store.interface import Store

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


def round2(value: float) -> float:
    """Round to 2 decimals, half away from zero.

    Works on the shortest decimal representation of the float, so 33.335
    rounds to 33.34 even though its binary value is slightly below.
    Non-finite values are returned unchanged.
    """
    if not math.isfinite(value):
        return float(value)
    return float(Decimal(repr(float(value))).quantize(_CENT, rounding=ROUND_HALF_UP))


def value_holding(holding: Holding, price: float) -> HoldingWithPrice:
    """Value one holding. An unknown price (0) shows as a full loss."""
    market_value = holding.quantity * price
    cost_basis = holding.quantity * holding.avg_cost
    pnl = market_value - cost_basis
    pnl_pct = pnl / cost_basis * 100 if cost_basis > 0 else 0.0
    return HoldingWithPrice(
        holding=holding,
        price=round2(price),
        market_value=round2(market_value),
        cost_basis=round2(cost_basis),
        pnl=round2(pnl),
        pnl_pct=round2(pnl_pct),
    )


def alert_condition_met(alert: PriceAlert, price: float) -> bool:
    """Whether ``price`` satisfies the alert. Equality fires in both directions."""
    if alert.direction is AlertDirection.ABOVE:
        return price >= alert.threshold
    if alert.direction is AlertDirection.BELOW:
        return price <= alert.threshold
    return False


class SnapshotBuilder:
    """Joins holdings, alerts and cached prices into a PortfolioSnapshot.

    Holds no state of its own. The only side effect of build() is persisting
    untriggered -> triggered transitions for alerts whose condition is met.
    """

    def __init__(
        self,
        store: Store,
        price_cache: PriceCache,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._cache = price_cache
        self._clock = clock

    async def build(self) -> PortfolioSnapshot:
        """Build a snapshot from current store contents and cached prices.

        Raises whatever the store raises when listing holdings or alerts.
        """
        holdings = await asyncio.to_thread(self._store.list_holdings)
        alerts = await asyncio.to_thread(self._store.list_alerts)
        prices = self._cache.snapshot()

        rows: list[HoldingWithPrice] = []
        total_value = 0.0
        total_cost = 0.0
        for holding in holdings:
            price = prices.get(holding.key, 0.0)
            rows.append(value_holding(holding, price))
            total_value += holding.quantity * price
            total_cost += holding.quantity * holding.avg_cost

        alerts_fired = await self._evaluate_alerts(alerts, prices)

        return PortfolioSnapshot(
            holdings=rows,
            total_value=round2(total_value),
            total_cost=round2(total_cost),
            total_pnl=round2(total_value - total_cost),
            updated_at=self._clock(),
            alerts_fired=alerts_fired,
        )

    async def _evaluate_alerts(
        self, alerts: list[PriceAlert], prices: Mapping[PriceKey, float]
    ) -> list[PriceAlert]:
        fired: list[PriceAlert] = []
        for alert in alerts:
            if alert.triggered:
                continue
            price = prices.get(alert.key)
            if price is None or price <= 0:
                continue
            if not alert_condition_met(alert, price):
                continue

            now = self._clock()
            try:
                await asyncio.to_thread(self._store.mark_alert_triggered, alert.id, now)
            except Exception:
                logger.exception("Failed to mark alert %d triggered", alert.id)
                continue

            logger.info(
                "Alert %d fired: %s %s %s (price %s)",
                alert.id,
                alert.ticker,
                alert.direction.value,
                alert.threshold,
                price,
            )
            fired.append(alert.mark_triggered(now))
        return fired
