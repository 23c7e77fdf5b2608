"""PortfolioPulse: live portfolio valuation and price alerts."""

__version__ = "0.1.0"
