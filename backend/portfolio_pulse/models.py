"""Domain models for holdings, alerts and portfolio snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum


class AssetType(str, Enum):
    """Closed set of asset classes. Each one maps to its own quote source."""

    STOCK = "stock"
    CRYPTO = "crypto"


class AlertDirection(str, Enum):
    ABOVE = "above"
    BELOW = "below"


PriceKey = tuple[AssetType, str]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_ticker(ticker: str) -> str:
    return ticker.strip().upper()


def price_key(asset_type: AssetType, ticker: str) -> PriceKey:
    """Cache key for a ticker: (asset type, normalized ticker)."""
    return (AssetType(asset_type), normalize_ticker(ticker))


def format_timestamp(ts: datetime) -> str:
    """RFC 3339 UTC string with a trailing 'Z'."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class Holding:
    """A position in one asset. Owned by the store; read-only to the core."""

    id: int
    ticker: str
    asset_type: AssetType
    quantity: float
    avg_cost: float
    created_at: datetime = field(default_factory=utcnow)

    @property
    def key(self) -> PriceKey:
        return price_key(self.asset_type, self.ticker)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ticker": self.ticker,
            "assetType": self.asset_type.value,
            "quantity": self.quantity,
            "avgCost": self.avg_cost,
            "createdAt": format_timestamp(self.created_at),
        }


@dataclass(frozen=True, slots=True)
class PriceAlert:
    """A one-shot price alert.

    Lifecycle is ``untriggered -> triggered`` and never goes back.
    ``triggered_at`` is set exactly when ``triggered`` is True.
    """

    id: int
    ticker: str
    asset_type: AssetType
    direction: AlertDirection
    threshold: float
    created_at: datetime = field(default_factory=utcnow)
    triggered: bool = False
    triggered_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.triggered != (self.triggered_at is not None):
            raise ValueError("triggered_at must be set if and only if the alert is triggered")

    @property
    def key(self) -> PriceKey:
        return price_key(self.asset_type, self.ticker)

    def mark_triggered(self, triggered_at: datetime) -> PriceAlert:
        """Return a copy of this alert in the triggered state."""
        return replace(self, triggered=True, triggered_at=triggered_at)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "ticker": self.ticker,
            "assetType": self.asset_type.value,
            "direction": self.direction.value,
            "threshold": self.threshold,
            "createdAt": format_timestamp(self.created_at),
            "triggered": self.triggered,
        }
        if self.triggered_at is not None:
            data["triggeredAt"] = format_timestamp(self.triggered_at)
        return data


@dataclass(frozen=True, slots=True)
class HoldingWithPrice:
    """A holding valued at the current cached price."""

    holding: Holding
    price: float
    market_value: float
    cost_basis: float
    pnl: float
    pnl_pct: float

    def to_dict(self) -> dict:
        data = self.holding.to_dict()
        data.update(
            {
                "price": self.price,
                "marketValue": self.market_value,
                "costBasis": self.cost_basis,
                "pnl": self.pnl,
                "pnlPct": self.pnl_pct,
            }
        )
        return data


@dataclass(frozen=True, slots=True)
class PortfolioSnapshot:
    """Valuation report computed fresh on every build. Never persisted.

    ``alerts_fired`` only holds alerts that transitioned during the build
    that produced this snapshot.
    """

    holdings: list[HoldingWithPrice]
    total_value: float
    total_cost: float
    total_pnl: float
    updated_at: datetime
    alerts_fired: list[PriceAlert] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {
            "holdings": [h.to_dict() for h in self.holdings],
            "totalValue": self.total_value,
            "totalCost": self.total_cost,
            "totalPnl": self.total_pnl,
            "updatedAt": format_timestamp(self.updated_at),
        }
        if self.alerts_fired:
            data["alertsFired"] = [a.to_dict() for a in self.alerts_fired]
        return data
