"""Factory for creating quote sources."""

from __future__ import annotations

import logging
from typing import NamedTuple

import httpx

from ..config import Settings
from .interface import CryptoQuoteSource, EquityQuoteSource

logger = logging.getLogger(__name__)


class QuoteSources(NamedTuple):
    equity: EquityQuoteSource
    crypto: CryptoQuoteSource


def create_quote_sources(settings: Settings, client: httpx.AsyncClient) -> QuoteSources:
    """Pick quote sources based on settings.

    - simulate → SimulatedQuoteSource for both asset classes (no network)
    - MASSIVE_API_KEY set → MassiveQuoteSource for equities
    - Otherwise → YahooQuoteSource for equities
    Crypto is always CoinGecko unless simulating.
    """
    if settings.simulate:
        from .simulator import SimulatedQuoteSource

        logger.info("Quote source: GBM Simulator")
        sim = SimulatedQuoteSource()
        return QuoteSources(equity=sim, crypto=sim)

    from .coingecko import CoinGeckoQuoteSource

    if settings.massive_api_key:
        from .massive_client import MassiveQuoteSource

        logger.info("Equity quote source: Massive API")
        equity: EquityQuoteSource = MassiveQuoteSource(api_key=settings.massive_api_key, timeout=settings.fetch_timeout)
    else:
        from .yahoo import YahooQuoteSource

        logger.info("Equity quote source: Yahoo Finance")
        equity = YahooQuoteSource(client)

    logger.info("Crypto quote source: CoinGecko")
    return QuoteSources(equity=equity, crypto=CoinGeckoQuoteSource(client))
