"""Yahoo Finance chart endpoint as an equity quote source."""

from __future__ import annotations

from urllib.parse import quote

import httpx

from .interface import EquityQuoteSource, QuoteSourceError

YAHOO_CHART_URL = "https://query2.finance.yahoo.com/v8/finance/chart/{symbol}"
USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36"


class YahooQuoteSource(EquityQuoteSource):
    """Quotes one equity per request via ``/v8/finance/chart/{symbol}``.

    The price is ``chart.result[0].meta.regularMarketPrice``. No API key is
    needed, but Yahoo rejects requests without a browser-like User-Agent.
    """

    name = "yahoo"

    def __init__(self, client: httpx.AsyncClient, base_url: str = YAHOO_CHART_URL) -> None:
        self._client = client
        self._base_url = base_url

    async def fetch_price(self, symbol: str) -> float:
        url = self._base_url.format(symbol=quote(symbol, safe=""))
        resp = await self._client.get(
            url,
            params={"interval": "1d", "range": "1d"},
            headers={"User-Agent": USER_AGENT},
        )
        if resp.status_code != 200:
            raise QuoteSourceError(f"yahoo status {resp.status_code} for {symbol}")

        try:
            payload = resp.json()
            results = payload["chart"]["result"] or []
        except (ValueError, KeyError, TypeError) as e:
            raise QuoteSourceError(f"decode yahoo quote for {symbol}: {e}") from e
        if not results:
            raise QuoteSourceError(f"yahoo returned no result for {symbol}")

        meta = results[0].get("meta") or {}
        price = meta.get("regularMarketPrice")
        if price is None:
            raise QuoteSourceError(f"yahoo quote for {symbol} has no regularMarketPrice")
        return float(price)
