"""Massive (Polygon.io) API client as an equity quote source."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from .interface import EquityQuoteSource, QuoteSourceError

logger = logging.getLogger(__name__)


class MassiveQuoteSource(EquityQuoteSource):
    """EquityQuoteSource backed by the Massive (Polygon.io) REST API.

    Quotes one ticker per request through ``GET /v2/last/trade/{ticker}``.
    Selected instead of Yahoo when MASSIVE_API_KEY is set.

    Rate limits:
      - Free tier: 5 req/min → keep the poll interval long or the
        holdings list short
      - Paid tiers: effectively unlimited for this use
    """

    name = "massive"

    def __init__(self, api_key: str, timeout: float | None = None) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._client: Any = None  # Created on first use

    def _get_client(self) -> Any:
        if self._client is None:
            # Lazy import: only needed when real Massive data is configured.
            from massive import RESTClient

            self._client = RESTClient(api_key=self._api_key)
            logger.info("Massive REST client created")
        return self._client

    async def fetch_price(self, symbol: str) -> float:
        # The Massive RESTClient is synchronous; run in a thread to
        # avoid blocking the event loop.
        try:
            trade = await asyncio.wait_for(
                asyncio.to_thread(self._fetch_last_trade, symbol), timeout=self._timeout
            )
        except TimeoutError as e:
            raise QuoteSourceError(f"massive last trade for {symbol} timed out after {self._timeout}s") from e
        try:
            return float(trade.price)
        except (AttributeError, TypeError, ValueError) as e:
            raise QuoteSourceError(f"massive last trade for {symbol} is malformed: {e}") from e

    def _fetch_last_trade(self, symbol: str) -> Any:
        """Synchronous call to the Massive REST API. Runs in a thread."""
        return self._get_client().get_last_trade(ticker=symbol)
