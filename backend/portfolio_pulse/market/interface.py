"""Abstract interfaces for external quote sources."""

from __future__ import annotations

from abc import ABC, abstractmethod


class QuoteSourceError(Exception):
    """An upstream quote request failed."""


class EquityQuoteSource(ABC):
    """Contract for equity price providers.

    Equities are quoted one symbol per request. The PriceCache treats each
    request independently: a failing symbol is skipped, the others still land
    in the cache.
    """

    name: str = "equity"

    @abstractmethod
    async def fetch_price(self, symbol: str) -> float:
        """Return the current price for a normalized ticker.

        Raises QuoteSourceError (or any transport error) when the symbol could
        not be quoted.
        """


class CryptoQuoteSource(ABC):
    """Contract for crypto price providers.

    Crypto assets are quoted in one batched request keyed by provider-specific
    identifiers. A failure of that request is a failure of the whole batch.
    """

    name: str = "crypto"

    @abstractmethod
    def coin_id(self, ticker: str) -> str | None:
        """Map a normalized ticker to the provider identifier, or None if unknown.

        Tickers without an identifier are never queried.
        """

    @abstractmethod
    async def fetch_prices(self, ids: list[str]) -> dict[str, float]:
        """Return ``{provider_id: price}`` for the requested identifiers.

        Raises QuoteSourceError when the batched request fails.
        """
