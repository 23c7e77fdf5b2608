"""CoinGecko simple-price endpoint as a crypto quote source."""

from __future__ import annotations

import logging

import httpx

from .interface import CryptoQuoteSource, QuoteSourceError

logger = logging.getLogger(__name__)

COINGECKO_PRICE_URL = "https://api.coingecko.com/api/v3/simple/price"

# Ticker (and common long names) -> CoinGecko coin id
COINGECKO_IDS: dict[str, str] = {
    "BTC": "bitcoin",
    "BITCOIN": "bitcoin",
    "ETH": "ethereum",
    "ETHEREUM": "ethereum",
    "SOL": "solana",
    "SOLANA": "solana",
    "DOGE": "dogecoin",
    "ADA": "cardano",
    "XRP": "ripple",
    "DOT": "polkadot",
    "AVAX": "avalanche-2",
    "MATIC": "matic-network",
    "LINK": "chainlink",
}


class CoinGeckoQuoteSource(CryptoQuoteSource):
    """Quotes every requested coin in a single ``/simple/price`` call (USD)."""

    name = "coingecko"

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str = COINGECKO_PRICE_URL,
        ids: dict[str, str] | None = None,
    ) -> None:
        self._client = client
        self._url = url
        self._ids = dict(COINGECKO_IDS if ids is None else ids)

    def coin_id(self, ticker: str) -> str | None:
        return self._ids.get(ticker.strip().upper())

    async def fetch_prices(self, ids: list[str]) -> dict[str, float]:
        if not ids:
            return {}
        try:
            resp = await self._client.get(
                self._url,
                params={"ids": ",".join(ids), "vs_currencies": "usd"},
            )
        except httpx.HTTPError as e:
            raise QuoteSourceError(f"fetch coingecko prices: {e}") from e

        if resp.status_code != 200:
            body = resp.content[:512].decode("utf-8", errors="replace").strip()
            raise QuoteSourceError(f"coingecko status {resp.status_code}: {body}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise QuoteSourceError(f"decode coingecko prices: {e}") from e
        if not isinstance(payload, dict):
            raise QuoteSourceError("decode coingecko prices: unexpected payload")

        prices: dict[str, float] = {}
        for coin_id in ids:
            entry = payload.get(coin_id)
            if not isinstance(entry, dict) or entry.get("usd") is None:
                continue
            try:
                prices[coin_id] = float(entry["usd"])
            except (TypeError, ValueError):
                logger.warning("Ignoring malformed coingecko price for %s: %r", coin_id, entry["usd"])
        return prices
