"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from fakes import FakeCryptoSource, FakeEquitySource
from portfolio_pulse.market.cache import PriceCache
from portfolio_pulse.store.sqlite import SQLiteStore


@pytest.fixture
def event_loop_policy():
    """Use the default event loop policy for all async tests."""
    import asyncio

    return asyncio.DefaultEventLoopPolicy()


@pytest.fixture
def equity_source() -> FakeEquitySource:
    return FakeEquitySource()


@pytest.fixture
def crypto_source() -> FakeCryptoSource:
    return FakeCryptoSource()


@pytest.fixture
def price_cache(equity_source, crypto_source) -> PriceCache:
    return PriceCache(equity_source=equity_source, crypto_source=crypto_source)


@pytest.fixture
def store():
    s = SQLiteStore(":memory:")
    yield s
    s.close()
