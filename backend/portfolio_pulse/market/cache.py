"""Thread-safe in-memory price cache."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Iterable, Mapping
from threading import Lock
from types import MappingProxyType

from ..models import AssetType, Holding, PriceKey, price_key
from .interface import CryptoQuoteSource, EquityQuoteSource

logger = logging.getLogger(__name__)


def _is_valid_price(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


class PriceCache:
    """Latest known price per (asset type, ticker).

    Writer: RefreshPipeline, through refresh().
    Readers: SnapshotBuilder and anything else that calls snapshot().

    The lock is only held for the merge and for copying. Network calls happen
    before the lock is taken, so slow quote sources never block readers.
    It is a plain mutex rather than a reader/writer lock, so concurrent
    readers serialize briefly on the copy.
    Entries are overwritten in place and never removed: a failed fetch leaves
    the previous price available.
    """

    def __init__(self, equity_source: EquityQuoteSource, crypto_source: CryptoQuoteSource) -> None:
        self._equity = equity_source
        self._crypto = crypto_source
        self._prices: dict[PriceKey, float] = {}
        self._lock = Lock()
        self._version: int = 0  # Bumped on every merge that stored at least one price

    async def refresh(self, holdings: Iterable[Holding]) -> None:
        """Fetch prices for every distinct holding key and merge them.

        Raises QuoteSourceError if the batched crypto request fails; nothing is
        merged in that case.
        """
        stocks: list[str] = []
        cryptos: dict[str, list[str]] = {}  # provider id -> tickers quoted by it
        seen: set[PriceKey] = set()

        for holding in holdings:
            key = price_key(holding.asset_type, holding.ticker)
            if key in seen:
                continue
            seen.add(key)
            asset_type, ticker = key
            if asset_type is AssetType.CRYPTO:
                coin_id = self._crypto.coin_id(ticker)
                if coin_id is None:
                    logger.debug("No %s id for crypto ticker %s, skipping", self._crypto.name, ticker)
                    continue
                cryptos.setdefault(coin_id, []).append(ticker)
            else:
                stocks.append(ticker)

        updates: dict[PriceKey, float] = {}
        if stocks:
            updates.update(await self._fetch_equities(stocks))
        if cryptos:
            updates.update(await self._fetch_cryptos(cryptos))

        self._merge(updates)

    async def _fetch_equities(self, symbols: list[str]) -> dict[PriceKey, float]:
        """One request per symbol. Failures are skipped individually."""
        results = await asyncio.gather(
            *(self._equity.fetch_price(symbol) for symbol in symbols),
            return_exceptions=True,
        )
        updates: dict[PriceKey, float] = {}
        for symbol, result in zip(symbols, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                logger.debug("Skipping %s quote for %s: %s", self._equity.name, symbol, result)
                continue
            updates[(AssetType.STOCK, symbol)] = result
        return updates

    async def _fetch_cryptos(self, tickers_by_id: dict[str, list[str]]) -> dict[PriceKey, float]:
        """One batched request. Failures propagate."""
        prices = await self._crypto.fetch_prices(list(tickers_by_id))
        updates: dict[PriceKey, float] = {}
        for coin_id, tickers in tickers_by_id.items():
            if coin_id not in prices:
                continue
            for ticker in tickers:
                updates[(AssetType.CRYPTO, ticker)] = prices[coin_id]
        return updates

    def _merge(self, updates: Mapping[PriceKey, float]) -> int:
        """Store valid prices. Non-positive and non-finite values are discarded."""
        valid = {key: float(value) for key, value in updates.items() if _is_valid_price(value)}
        discarded = len(updates) - len(valid)
        if discarded:
            logger.debug("Discarded %d invalid prices", discarded)
        if not valid:
            return 0
        with self._lock:
            self._prices.update(valid)
            self._version += 1
        return len(valid)

    def snapshot(self) -> Mapping[PriceKey, float]:
        """Read-only copy of all current prices."""
        with self._lock:
            return MappingProxyType(dict(self._prices))

    def get_price(self, asset_type: AssetType, ticker: str) -> float | None:
        """Convenience: latest price for one ticker, or None if unknown."""
        with self._lock:
            return self._prices.get(price_key(asset_type, ticker))

    @property
    def version(self) -> int:
        """Current version counter."""
        return self._version

    def __len__(self) -> int:
        with self._lock:
            return len(self._prices)

    def __contains__(self, key: PriceKey) -> bool:
        with self._lock:
            return key in self._prices
