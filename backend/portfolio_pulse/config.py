"""Runtime settings read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

TRUTHY = {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def parse_addr(addr: str) -> tuple[str, int]:
    """Split ``host:port`` (host optional, as in ``:8080``)."""
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address {addr!r}, expected [host]:port")
    return host or "0.0.0.0", int(port)


@dataclass(frozen=True, slots=True)
class Settings:
    """Process configuration.

    Environment variables:
        PORTFOLIO_PULSE_ADDR             listen address, default ":8080"
        PORTFOLIO_PULSE_DB               SQLite file, default "./portfoliopulse.db"
        PORTFOLIO_PULSE_POLL_INTERVAL    seconds between scheduled refreshes (30)
        PORTFOLIO_PULSE_FETCH_TIMEOUT    HTTP timeout for quote requests (10)
        PORTFOLIO_PULSE_SHUTDOWN_GRACE   seconds to wait for in-flight runs (8)
        PORTFOLIO_PULSE_STATIC_DIR       built SPA directory, default "web/dist"
        PORTFOLIO_PULSE_SIMULATE         use the GBM simulator instead of live quotes
        PORTFOLIO_PULSE_LOG_LEVEL        logging level name, default "INFO"
        MASSIVE_API_KEY                  use Massive for equities instead of Yahoo
    """

    addr: str = ":8080"
    db_path: str = "./portfoliopulse.db"
    poll_interval: float = 30.0
    fetch_timeout: float = 10.0
    shutdown_grace: float = 8.0
    static_dir: str = "web/dist"
    massive_api_key: str = ""
    simulate: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        defaults = cls()
        return cls(
            addr=os.environ.get("PORTFOLIO_PULSE_ADDR", "").strip() or defaults.addr,
            db_path=os.environ.get("PORTFOLIO_PULSE_DB", "").strip() or defaults.db_path,
            poll_interval=_env_float("PORTFOLIO_PULSE_POLL_INTERVAL", defaults.poll_interval),
            fetch_timeout=_env_float("PORTFOLIO_PULSE_FETCH_TIMEOUT", defaults.fetch_timeout),
            shutdown_grace=_env_float("PORTFOLIO_PULSE_SHUTDOWN_GRACE", defaults.shutdown_grace),
            static_dir=os.environ.get("PORTFOLIO_PULSE_STATIC_DIR", "").strip() or defaults.static_dir,
            massive_api_key=os.environ.get("MASSIVE_API_KEY", "").strip(),
            simulate=os.environ.get("PORTFOLIO_PULSE_SIMULATE", "").strip().lower() in TRUTHY,
            log_level=os.environ.get("PORTFOLIO_PULSE_LOG_LEVEL", "").strip().upper() or defaults.log_level,
        )

    def with_overrides(self, **overrides) -> Settings:
        """Copy with every non-None override applied (used for CLI flags)."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
