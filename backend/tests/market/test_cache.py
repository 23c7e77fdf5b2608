"""Tests for PriceCache."""

import math
from types import MappingProxyType

import pytest

from portfolio_pulse.market.interface import QuoteSourceError
from portfolio_pulse.models import AssetType, Holding


def _holding(ticker: str, asset_type: AssetType = AssetType.STOCK, hid: int = 1) -> Holding:
    return Holding(id=hid, ticker=ticker, asset_type=asset_type, quantity=1, avg_cost=1)


@pytest.mark.asyncio
class TestPriceCacheRefresh:
    """Unit tests for PriceCache.refresh()."""

    async def test_refresh_stores_equity_and_crypto(self, price_cache, equity_source, crypto_source):
        """Test that both asset classes land in the cache."""
        equity_source.prices = {"AAPL": 190.50}
        crypto_source.prices = {"bitcoin": 30000.0}

        await price_cache.refresh([_holding("AAPL"), _holding("BTC", AssetType.CRYPTO)])

        assert price_cache.get_price(AssetType.STOCK, "AAPL") == 190.50
        assert price_cache.get_price(AssetType.CRYPTO, "BTC") == 30000.0

    async def test_duplicate_holdings_fetched_once(self, price_cache, equity_source):
        """Test that holdings sharing a key produce a single request."""
        equity_source.prices = {"AAPL": 190.0}

        await price_cache.refresh([_holding("AAPL", hid=1), _holding(" aapl ", hid=2)])

        assert equity_source.calls == ["AAPL"]

    async def test_same_ticker_different_asset_types_are_distinct(self, price_cache, equity_source, crypto_source):
        """Test that a stock and a crypto with the same ticker do not collide."""
        equity_source.prices = {"LINK": 12.0}
        crypto_source.prices = {"chainlink": 15.0}

        await price_cache.refresh([_holding("LINK"), _holding("LINK", AssetType.CRYPTO)])

        assert price_cache.get_price(AssetType.STOCK, "LINK") == 12.0
        assert price_cache.get_price(AssetType.CRYPTO, "LINK") == 15.0

    async def test_crypto_ids_batched(self, price_cache, crypto_source):
        """Test that every crypto id goes into a single batched call."""
        crypto_source.prices = {"bitcoin": 30000.0, "ethereum": 2000.0}

        await price_cache.refresh([_holding("BTC", AssetType.CRYPTO), _holding("ETH", AssetType.CRYPTO)])

        assert len(crypto_source.calls) == 1
        assert set(crypto_source.calls[0]) == {"bitcoin", "ethereum"}

    async def test_ticker_aliases_share_one_id(self, price_cache, crypto_source):
        """Test that BTC and BITCOIN both get the bitcoin price."""
        crypto_source.prices = {"bitcoin": 30000.0}

        await price_cache.refresh([_holding("BTC", AssetType.CRYPTO), _holding("BITCOIN", AssetType.CRYPTO)])

        assert crypto_source.calls == [["bitcoin"]]
        assert price_cache.get_price(AssetType.CRYPTO, "BTC") == 30000.0
        assert price_cache.get_price(AssetType.CRYPTO, "BITCOIN") == 30000.0

    async def test_unmapped_crypto_skipped(self, price_cache, crypto_source):
        """Test that a crypto ticker with no id is never queried and not an error."""
        await price_cache.refresh([_holding("NOTACOIN", AssetType.CRYPTO)])

        assert crypto_source.calls == []
        assert len(price_cache) == 0

    async def test_failed_equity_keeps_previous_price(self, price_cache, equity_source):
        """Test that a failed symbol keeps its stale price while others update."""
        equity_source.prices = {"X": 10.0, "Y": 20.0}
        await price_cache.refresh([_holding("X"), _holding("Y")])

        equity_source.prices = {"X": 11.0, "Y": 21.0}
        equity_source.failing = {"X"}
        await price_cache.refresh([_holding("X"), _holding("Y")])

        assert price_cache.get_price(AssetType.STOCK, "X") == 10.0
        assert price_cache.get_price(AssetType.STOCK, "Y") == 21.0

    async def test_crypto_failure_raises_and_merges_nothing(self, price_cache, equity_source, crypto_source):
        """Test that a failed crypto batch fails the whole refresh."""
        equity_source.prices = {"AAPL": 190.0}
        crypto_source.fail = True

        with pytest.raises(QuoteSourceError):
            await price_cache.refresh([_holding("AAPL"), _holding("BTC", AssetType.CRYPTO)])

        assert len(price_cache) == 0

    async def test_invalid_prices_discarded(self, price_cache, equity_source):
        """Test that zero, negative and NaN prices are never stored."""
        equity_source.prices = {"A": 5.0, "B": 6.0, "C": 7.0}
        await price_cache.refresh([_holding("A"), _holding("B"), _holding("C")])

        equity_source.prices = {"A": 0.0, "B": -1.0, "C": math.nan}
        await price_cache.refresh([_holding("A"), _holding("B"), _holding("C")])

        assert price_cache.get_price(AssetType.STOCK, "A") == 5.0
        assert price_cache.get_price(AssetType.STOCK, "B") == 6.0
        assert price_cache.get_price(AssetType.STOCK, "C") == 7.0

    async def test_infinite_prices_discarded(self, price_cache, equity_source, crypto_source):
        """Test that an overflowing quote such as 1e400 never reaches the cache."""
        holdings = [_holding("AAPL"), _holding("BTC", AssetType.CRYPTO, hid=2)]
        equity_source.prices = {"AAPL": math.inf}
        crypto_source.prices = {"bitcoin": math.inf}

        await price_cache.refresh(holdings)

        assert len(price_cache) == 0
        assert price_cache.version == 0

    async def test_empty_holdings_makes_no_requests(self, price_cache, equity_source, crypto_source):
        """Test that refreshing nothing is a no-op."""
        await price_cache.refresh([])

        assert equity_source.calls == []
        assert crypto_source.calls == []


@pytest.mark.asyncio
class TestPriceCacheReads:
    """Unit tests for the read side of PriceCache."""

    async def test_snapshot_is_read_only_copy(self, price_cache, equity_source):
        """Test that snapshot() cannot be mutated and does not track later writes."""
        equity_source.prices = {"AAPL": 190.0}
        await price_cache.refresh([_holding("AAPL")])

        snap = price_cache.snapshot()
        assert isinstance(snap, MappingProxyType)
        with pytest.raises(TypeError):
            snap[(AssetType.STOCK, "MSFT")] = 1.0  # type: ignore[index]

        equity_source.prices = {"AAPL": 200.0}
        await price_cache.refresh([_holding("AAPL")])
        assert snap[(AssetType.STOCK, "AAPL")] == 190.0

    async def test_version_increments(self, price_cache, equity_source):
        """Test that version changes only when something was stored."""
        v0 = price_cache.version
        await price_cache.refresh([_holding("AAPL")])  # No price available
        assert price_cache.version == v0

        equity_source.prices = {"AAPL": 190.0}
        await price_cache.refresh([_holding("AAPL")])
        assert price_cache.version == v0 + 1

    async def test_len_and_contains(self, price_cache, equity_source):
        """Test __len__ and __contains__."""
        assert len(price_cache) == 0
        equity_source.prices = {"AAPL": 190.0, "GOOGL": 175.0}
        await price_cache.refresh([_holding("AAPL"), _holding("GOOGL")])

        assert len(price_cache) == 2
        assert (AssetType.STOCK, "AAPL") in price_cache
        assert (AssetType.CRYPTO, "AAPL") not in price_cache

    async def test_get_price_normalizes_ticker(self, price_cache, equity_source):
        """Test that lookups trim and upper-case the ticker."""
        equity_source.prices = {"AAPL": 190.0}
        await price_cache.refresh([_holding("AAPL")])

        assert price_cache.get_price(AssetType.STOCK, " aapl ") == 190.0
        assert price_cache.get_price(AssetType.STOCK, "NOPE") is None
