"""GBM-based simulated quote source for offline use."""

from __future__ import annotations

import logging
import math
import random
import time

import numpy as np

from .coingecko import COINGECKO_IDS
from .interface import CryptoQuoteSource, EquityQuoteSource
from .seed_prices import (
    CORRELATION_GROUPS,
    CROSS_GROUP_CORR,
    CRYPTO_EQUITY_CORR,
    DEFAULT_CRYPTO_PARAMS,
    DEFAULT_PARAMS,
    INTRA_CRYPTO_CORR,
    INTRA_FINANCE_CORR,
    INTRA_TECH_CORR,
    SEED_PRICES,
    TICKER_PARAMS,
    TSLA_CORR,
)

logger = logging.getLogger(__name__)


class GBMSimulator:
    """Geometric Brownian Motion simulator for correlated prices.

    Math:
        S(t+dt) = S(t) * exp((mu - sigma^2/2) * dt + sigma * sqrt(dt) * Z)

    Where:
        S(t)   = current price
        mu     = annualized drift (expected return)
        sigma  = annualized volatility
        dt     = time step as fraction of a trading year
        Z      = correlated standard normal random variable

    Instruments are equity tickers or CoinGecko coin ids.
    """

    # 252 trading days * 6.5 hours/day * 3600 seconds/hour = 5,896,800 seconds
    TRADING_SECONDS_PER_YEAR = 252 * 6.5 * 3600
    DEFAULT_DT = 30.0 / TRADING_SECONDS_PER_YEAR  # One default poll interval

    def __init__(
        self,
        instruments: list[str],
        dt: float = DEFAULT_DT,
        event_probability: float = 0.001,
    ) -> None:
        self._dt = dt
        self._event_prob = event_probability

        self._instruments: list[str] = []
        self._prices: dict[str, float] = {}
        self._params: dict[str, dict[str, float]] = {}
        self._cholesky: np.ndarray | None = None

        for instrument in instruments:
            self._add_internal(instrument)
        self._rebuild_cholesky()

    def step(self) -> dict[str, float]:
        """Advance every instrument by one time step. Returns {instrument: new_price}."""
        n = len(self._instruments)
        if n == 0:
            return {}

        z_independent = np.random.standard_normal(n)
        if self._cholesky is not None:
            z_correlated = self._cholesky @ z_independent
        else:
            z_correlated = z_independent

        result: dict[str, float] = {}
        for i, instrument in enumerate(self._instruments):
            params = self._params[instrument]
            mu = params["mu"]
            sigma = params["sigma"]

            drift = (mu - 0.5 * sigma**2) * self._dt
            diffusion = sigma * math.sqrt(self._dt) * z_correlated[i]
            self._prices[instrument] *= math.exp(drift + diffusion)

            if random.random() < self._event_prob:
                shock_magnitude = random.uniform(0.02, 0.05)
                shock_sign = random.choice([-1, 1])
                self._prices[instrument] *= 1 + shock_magnitude * shock_sign
                logger.debug(
                    "Random event on %s: %.1f%% %s",
                    instrument,
                    shock_magnitude * 100,
                    "up" if shock_sign > 0 else "down",
                )

            result[instrument] = self._prices[instrument]

        return result

    def add(self, instrument: str) -> None:
        """Start simulating an instrument. Rebuilds the correlation matrix."""
        if instrument in self._prices:
            return
        self._add_internal(instrument)
        self._rebuild_cholesky()

    def get_price(self, instrument: str) -> float | None:
        return self._prices.get(instrument)

    @property
    def instruments(self) -> list[str]:
        return list(self._instruments)

    # --- Internals ---

    def _add_internal(self, instrument: str) -> None:
        if instrument in self._prices:
            return
        self._instruments.append(instrument)
        self._prices[instrument] = SEED_PRICES.get(instrument, random.uniform(50.0, 300.0))
        default = DEFAULT_CRYPTO_PARAMS if instrument in CORRELATION_GROUPS["crypto"] else DEFAULT_PARAMS
        self._params[instrument] = TICKER_PARAMS.get(instrument, dict(default))

    def _rebuild_cholesky(self) -> None:
        n = len(self._instruments)
        if n <= 1:
            self._cholesky = None
            return

        corr = np.eye(n)
        for i in range(n):
            for j in range(i + 1, n):
                rho = self._pairwise_correlation(self._instruments[i], self._instruments[j])
                corr[i, j] = rho
                corr[j, i] = rho

        self._cholesky = np.linalg.cholesky(corr)

    @staticmethod
    def _pairwise_correlation(a: str, b: str) -> float:
        tech = CORRELATION_GROUPS["tech"]
        finance = CORRELATION_GROUPS["finance"]
        crypto = CORRELATION_GROUPS["crypto"]

        if (a in crypto) != (b in crypto):
            return CRYPTO_EQUITY_CORR
        if a in crypto and b in crypto:
            return INTRA_CRYPTO_CORR

        # TSLA is in the tech set but behaves independently
        if a == "TSLA" or b == "TSLA":
            return TSLA_CORR
        if a in tech and b in tech:
            return INTRA_TECH_CORR
        if a in finance and b in finance:
            return INTRA_FINANCE_CORR
        return CROSS_GROUP_CORR


class SimulatedQuoteSource(EquityQuoteSource, CryptoQuoteSource):
    """Serves both asset classes from one GBMSimulator.

    The simulation advances at most once per ``step_interval`` seconds, so all
    symbols requested during one refresh see prices from the same step.
    """

    name = "simulator"

    def __init__(
        self,
        step_interval: float = 1.0,
        event_probability: float = 0.001,
        ids: dict[str, str] | None = None,
    ) -> None:
        self._sim = GBMSimulator(instruments=[], event_probability=event_probability)
        self._step_interval = step_interval
        self._last_step: float | None = None
        self._ids = dict(COINGECKO_IDS if ids is None else ids)

    def coin_id(self, ticker: str) -> str | None:
        return self._ids.get(ticker.strip().upper())

    async def fetch_price(self, symbol: str) -> float:
        self._maybe_step()
        return self._quote(symbol)

    async def fetch_prices(self, ids: list[str]) -> dict[str, float]:
        self._maybe_step()
        return {coin_id: self._quote(coin_id) for coin_id in ids}

    def _quote(self, instrument: str) -> float:
        if self._sim.get_price(instrument) is None:
            self._sim.add(instrument)
            logger.info("Simulator: tracking %s", instrument)
        return round(self._sim.get_price(instrument), 8)

    def _maybe_step(self) -> None:
        now = time.monotonic()
        if self._last_step is None:
            self._last_step = now
            return
        if now - self._last_step >= self._step_interval:
            self._sim.step()
            self._last_step = now
