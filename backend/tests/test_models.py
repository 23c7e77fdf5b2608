"""Tests for domain models and their wire format."""

from datetime import datetime, timezone

import pytest

from portfolio_pulse.models import (
    AlertDirection,
    AssetType,
    Holding,
    HoldingWithPrice,
    PortfolioSnapshot,
    PriceAlert,
    format_timestamp,
    price_key,
)

TS = datetime(2024, 2, 10, 16, 0, tzinfo=timezone.utc)


def _alert(**overrides) -> PriceAlert:
    fields = {
        "id": 1,
        "ticker": "AAPL",
        "asset_type": AssetType.STOCK,
        "direction": AlertDirection.ABOVE,
        "threshold": 150.0,
        "created_at": TS,
    }
    fields.update(overrides)
    return PriceAlert(**fields)


class TestPriceKey:
    def test_normalizes_ticker(self):
        assert price_key(AssetType.STOCK, "  aapl ") == (AssetType.STOCK, "AAPL")

    def test_accepts_raw_asset_type(self):
        assert price_key("crypto", "btc") == (AssetType.CRYPTO, "BTC")

    def test_holding_key(self):
        h = Holding(id=1, ticker="MSFT", asset_type=AssetType.STOCK, quantity=1, avg_cost=1)
        assert h.key == (AssetType.STOCK, "MSFT")


class TestPriceAlert:
    """Tests for the alert lifecycle."""

    def test_new_alert_is_untriggered(self):
        alert = _alert()
        assert alert.triggered is False
        assert alert.triggered_at is None

    def test_mark_triggered(self):
        """Test that the transition sets both fields and leaves the original alone."""
        alert = _alert()
        fired = alert.mark_triggered(TS)

        assert fired.triggered is True
        assert fired.triggered_at == TS
        assert alert.triggered is False

    def test_triggered_requires_timestamp(self):
        """Test the triggered/triggered_at invariant."""
        with pytest.raises(ValueError):
            _alert(triggered=True)
        with pytest.raises(ValueError):
            _alert(triggered_at=TS)

    def test_immutability(self):
        alert = _alert()
        with pytest.raises(AttributeError):
            alert.threshold = 1.0  # type: ignore[misc]

    def test_to_dict_omits_unset_triggered_at(self):
        data = _alert().to_dict()
        assert data == {
            "id": 1,
            "ticker": "AAPL",
            "assetType": "stock",
            "direction": "above",
            "threshold": 150.0,
            "createdAt": "2024-02-10T16:00:00Z",
            "triggered": False,
        }

    def test_to_dict_includes_triggered_at(self):
        data = _alert().mark_triggered(TS).to_dict()
        assert data["triggered"] is True
        assert data["triggeredAt"] == "2024-02-10T16:00:00Z"


class TestSnapshotWireFormat:
    """Tests for PortfolioSnapshot.to_dict()."""

    def _snapshot(self, alerts_fired=None) -> PortfolioSnapshot:
        holding = Holding(id=7, ticker="AAPL", asset_type=AssetType.STOCK, quantity=2, avg_cost=100, created_at=TS)
        row = HoldingWithPrice(holding=holding, price=200, market_value=400, cost_basis=200, pnl=200, pnl_pct=100)
        return PortfolioSnapshot(
            holdings=[row],
            total_value=400,
            total_cost=200,
            total_pnl=200,
            updated_at=TS,
            alerts_fired=alerts_fired or [],
        )

    def test_holding_row_fields(self):
        row = self._snapshot().to_dict()["holdings"][0]
        assert row == {
            "id": 7,
            "ticker": "AAPL",
            "assetType": "stock",
            "quantity": 2,
            "avgCost": 100,
            "createdAt": "2024-02-10T16:00:00Z",
            "price": 200,
            "marketValue": 400,
            "costBasis": 200,
            "pnl": 200,
            "pnlPct": 100,
        }

    def test_totals_and_timestamp(self):
        data = self._snapshot().to_dict()
        assert data["totalValue"] == 400
        assert data["totalCost"] == 200
        assert data["totalPnl"] == 200
        assert data["updatedAt"] == "2024-02-10T16:00:00Z"

    def test_alerts_fired_omitted_when_empty(self):
        assert "alertsFired" not in self._snapshot().to_dict()

    def test_alerts_fired_present_when_set(self):
        fired = _alert().mark_triggered(TS)
        data = self._snapshot(alerts_fired=[fired]).to_dict()
        assert data["alertsFired"] == [fired.to_dict()]


class TestFormatTimestamp:
    def test_naive_treated_as_utc(self):
        assert format_timestamp(datetime(2024, 1, 1, 12, 0)) == "2024-01-01T12:00:00Z"

    def test_converts_to_utc(self):
        from datetime import timedelta

        ts = datetime(2024, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(ts) == "2024-01-01T12:00:00Z"
