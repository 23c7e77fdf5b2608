"""Tests for GBMSimulator and SimulatedQuoteSource."""

from unittest.mock import patch

import pytest

from portfolio_pulse.market.seed_prices import SEED_PRICES
from portfolio_pulse.market.simulator import GBMSimulator, SimulatedQuoteSource


class TestGBMSimulator:
    """Unit tests for the GBM price simulator."""

    def test_step_returns_all_instruments(self):
        """Test that step() returns prices for all instruments."""
        sim = GBMSimulator(instruments=["AAPL", "bitcoin"])
        result = sim.step()
        assert set(result.keys()) == {"AAPL", "bitcoin"}

    def test_prices_are_positive(self):
        """GBM prices can never go negative (exp() is always positive)."""
        sim = GBMSimulator(instruments=["AAPL", "dogecoin"])
        for _ in range(2_000):
            prices = sim.step()
            assert prices["AAPL"] > 0
            assert prices["dogecoin"] > 0

    def test_initial_prices_match_seeds(self):
        """Test that initial prices match seed prices."""
        sim = GBMSimulator(instruments=["AAPL", "bitcoin"])
        assert sim.get_price("AAPL") == SEED_PRICES["AAPL"]
        assert sim.get_price("bitcoin") == SEED_PRICES["bitcoin"]

    def test_add_instrument(self):
        """Test adding an instrument dynamically."""
        sim = GBMSimulator(instruments=["AAPL"])
        sim.add("ethereum")
        assert "ethereum" in sim.step()

    def test_add_duplicate_is_noop(self):
        """Test that adding a duplicate is a no-op."""
        sim = GBMSimulator(instruments=["AAPL"])
        sim.add("AAPL")
        assert sim.instruments == ["AAPL"]

    def test_unknown_instrument_gets_random_seed_price(self):
        """Test that unknown instruments get random seed prices."""
        sim = GBMSimulator(instruments=["ZZZZ"])
        price = sim.get_price("ZZZZ")
        assert price is not None
        assert 50.0 <= price <= 300.0

    def test_empty_step(self):
        """Test stepping with nothing tracked."""
        assert GBMSimulator(instruments=[]).step() == {}

    def test_cholesky_rebuilds_on_add(self):
        """Test that the Cholesky matrix appears once two instruments exist."""
        sim = GBMSimulator(instruments=["AAPL"])
        assert sim._cholesky is None
        sim.add("bitcoin")
        assert sim._cholesky is not None

    def test_full_universe_is_positive_definite(self):
        """Test that every seeded instrument together still decomposes."""
        sim = GBMSimulator(instruments=list(SEED_PRICES))
        assert sim._cholesky is not None

    def test_pairwise_correlation(self):
        """Test the sector-based correlation structure."""
        assert GBMSimulator._pairwise_correlation("AAPL", "GOOGL") == 0.6
        assert GBMSimulator._pairwise_correlation("JPM", "V") == 0.5
        assert GBMSimulator._pairwise_correlation("TSLA", "AAPL") == 0.3
        assert GBMSimulator._pairwise_correlation("AAPL", "JPM") == 0.3
        assert GBMSimulator._pairwise_correlation("bitcoin", "ethereum") == 0.8
        assert GBMSimulator._pairwise_correlation("bitcoin", "AAPL") == 0.1


@pytest.mark.asyncio
class TestSimulatedQuoteSource:
    """Tests for the simulator-backed quote source."""

    async def test_serves_equities_and_crypto(self):
        """Test that both interfaces return seeded prices on first use."""
        source = SimulatedQuoteSource()

        assert await source.fetch_price("AAPL") == SEED_PRICES["AAPL"]
        assert await source.fetch_prices(["bitcoin"]) == {"bitcoin": SEED_PRICES["bitcoin"]}

    async def test_coin_id_mapping(self):
        """Test that tickers map to the same ids as CoinGecko."""
        source = SimulatedQuoteSource()
        assert source.coin_id("BTC") == "bitcoin"
        assert source.coin_id("NOPE") is None

    async def test_steps_at_most_once_per_interval(self):
        """Test that repeated fetches inside one interval see the same step."""
        source = SimulatedQuoteSource(step_interval=60.0)
        first = await source.fetch_price("AAPL")
        second = await source.fetch_price("AAPL")
        assert first == second

    async def test_prices_move_after_interval(self):
        """Test that the simulation advances once the interval has elapsed."""
        source = SimulatedQuoteSource(step_interval=1.0)
        clock = iter([100.0, 200.0])

        with patch("portfolio_pulse.market.simulator.time.monotonic", side_effect=lambda: next(clock)):
            first = await source.fetch_price("AAPL")
            second = await source.fetch_price("AAPL")

        assert second != first
