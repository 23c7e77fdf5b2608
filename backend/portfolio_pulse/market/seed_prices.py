"""Seed prices and per-instrument parameters for the offline simulator."""

# Starting prices. Equities by ticker, crypto by CoinGecko id.
SEED_PRICES: dict[str, float] = {
    "AAPL": 190.00,
    "GOOGL": 175.00,
    "MSFT": 420.00,
    "AMZN": 185.00,
    "TSLA": 250.00,
    "NVDA": 800.00,
    "META": 500.00,
    "JPM": 195.00,
    "V": 280.00,
    "NFLX": 600.00,
    "bitcoin": 65000.00,
    "ethereum": 3200.00,
    "solana": 150.00,
    "dogecoin": 0.15,
    "cardano": 0.45,
    "ripple": 0.55,
    "polkadot": 7.00,
    "avalanche-2": 35.00,
    "matic-network": 0.70,
    "chainlink": 15.00,
}

# Per-instrument GBM parameters
# sigma: annualized volatility (higher = more price movement)
# mu: annualized drift / expected return
TICKER_PARAMS: dict[str, dict[str, float]] = {
    "AAPL": {"sigma": 0.22, "mu": 0.05},
    "GOOGL": {"sigma": 0.25, "mu": 0.05},
    "MSFT": {"sigma": 0.20, "mu": 0.05},
    "AMZN": {"sigma": 0.28, "mu": 0.05},
    "TSLA": {"sigma": 0.50, "mu": 0.03},
    "NVDA": {"sigma": 0.40, "mu": 0.08},
    "META": {"sigma": 0.30, "mu": 0.05},
    "JPM": {"sigma": 0.18, "mu": 0.04},
    "V": {"sigma": 0.17, "mu": 0.04},
    "NFLX": {"sigma": 0.35, "mu": 0.05},
    "bitcoin": {"sigma": 0.60, "mu": 0.10},
    "ethereum": {"sigma": 0.75, "mu": 0.10},
}

# Instruments not listed above
DEFAULT_PARAMS: dict[str, float] = {"sigma": 0.25, "mu": 0.05}
DEFAULT_CRYPTO_PARAMS: dict[str, float] = {"sigma": 0.90, "mu": 0.05}

# Instruments in the same group move together more strongly
CORRELATION_GROUPS: dict[str, set[str]] = {
    "tech": {"AAPL", "GOOGL", "MSFT", "AMZN", "META", "NVDA", "NFLX", "TSLA"},
    "finance": {"JPM", "V"},
    "crypto": {
        "bitcoin",
        "ethereum",
        "solana",
        "dogecoin",
        "cardano",
        "ripple",
        "polkadot",
        "avalanche-2",
        "matic-network",
        "chainlink",
    },
}

INTRA_TECH_CORR = 0.6
INTRA_FINANCE_CORR = 0.5
INTRA_CRYPTO_CORR = 0.8
CROSS_GROUP_CORR = 0.3
CRYPTO_EQUITY_CORR = 0.1
TSLA_CORR = 0.3
