"""Market data subsystem for PortfolioPulse.

Public API:
    PriceCache           - In-memory latest price per (asset type, ticker)
    EquityQuoteSource    - Per-symbol equity quote provider interface
    CryptoQuoteSource    - Batched crypto quote provider interface
    QuoteSourceError     - Raised when an upstream quote request fails
    create_quote_sources - Factory that selects Yahoo / Massive / CoinGecko / simulator
"""

from .cache import PriceCache
from .factory import QuoteSources, create_quote_sources
from .interface import CryptoQuoteSource, EquityQuoteSource, QuoteSourceError

__all__ = [
    "PriceCache",
    "EquityQuoteSource",
    "CryptoQuoteSource",
    "QuoteSourceError",
    "QuoteSources",
    "create_quote_sources",
]
