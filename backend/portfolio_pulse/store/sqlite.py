"""SQLite implementation of the Store."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock

from ..models import AlertDirection, AssetType, Holding, PriceAlert, normalize_ticker, utcnow
from .interface import NotFoundError, Store

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS holdings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    ticker TEXT NOT NULL,
    asset_type TEXT NOT NULL,
    quantity REAL NOT NULL,
    avg_cost REAL NOT NULL,
    created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS price_alerts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    ticker TEXT NOT NULL,
    asset_type TEXT NOT NULL,
    direction TEXT NOT NULL,
    threshold REAL NOT NULL,
    triggered INTEGER NOT NULL DEFAULT 0,
    triggered_at DATETIME,
    created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
);
"""

HOLDING_COLUMNS = "id, ticker, asset_type, quantity, avg_cost, created_at"
ALERT_COLUMNS = "id, ticker, asset_type, direction, threshold, created_at, triggered, triggered_at"


def _parse_ts(value: str) -> datetime:
    ts = datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _row_to_holding(row: sqlite3.Row) -> Holding:
    return Holding(
        id=row["id"],
        ticker=row["ticker"],
        asset_type=AssetType(row["asset_type"]),
        quantity=row["quantity"],
        avg_cost=row["avg_cost"],
        created_at=_parse_ts(row["created_at"]),
    )


def _row_to_alert(row: sqlite3.Row) -> PriceAlert:
    triggered_at = row["triggered_at"]
    return PriceAlert(
        id=row["id"],
        ticker=row["ticker"],
        asset_type=AssetType(row["asset_type"]),
        direction=AlertDirection(row["direction"]),
        threshold=row["threshold"],
        created_at=_parse_ts(row["created_at"]),
        triggered=row["triggered"] == 1,
        triggered_at=_parse_ts(triggered_at) if triggered_at else None,
    )


class SQLiteStore(Store):
    """Store backed by a single SQLite connection.

    The connection is shared across worker threads and guarded by a lock, so
    each method is atomic with respect to the others.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = Lock()
        self._migrate()

    def _migrate(self) -> None:
        with self._lock:
            self._conn.executescript(SCHEMA)
            self._conn.commit()
        logger.info("SQLite store ready: %s", self.db_path)

    def list_holdings(self) -> list[Holding]:
        with self._lock:
            rows = self._conn.execute(f"SELECT {HOLDING_COLUMNS} FROM holdings ORDER BY id ASC").fetchall()
        return [_row_to_holding(row) for row in rows]

    def create_holding(
        self, ticker: str, asset_type: AssetType, quantity: float, avg_cost: float
    ) -> Holding:
        with self._lock:
            cur = self._conn.execute(
                "INSERT INTO holdings(ticker, asset_type, quantity, avg_cost, created_at) VALUES (?, ?, ?, ?, ?)",
                (normalize_ticker(ticker), AssetType(asset_type).value, quantity, avg_cost, utcnow().isoformat()),
            )
            self._conn.commit()
            row = self._conn.execute(
                f"SELECT {HOLDING_COLUMNS} FROM holdings WHERE id = ?", (cur.lastrowid,)
            ).fetchone()
        return _row_to_holding(row)

    def delete_holding(self, holding_id: int) -> None:
        with self._lock:
            cur = self._conn.execute("DELETE FROM holdings WHERE id = ?", (holding_id,))
            self._conn.commit()
        if cur.rowcount == 0:
            raise NotFoundError(f"holding {holding_id} not found")

    def list_alerts(self) -> list[PriceAlert]:
        with self._lock:
            rows = self._conn.execute(f"SELECT {ALERT_COLUMNS} FROM price_alerts ORDER BY id ASC").fetchall()
        return [_row_to_alert(row) for row in rows]

    def create_alert(
        self, ticker: str, asset_type: AssetType, direction: AlertDirection, threshold: float
    ) -> PriceAlert:
        with self._lock:
            cur = self._conn.execute(
                "INSERT INTO price_alerts(ticker, asset_type, direction, threshold, created_at) VALUES (?, ?, ?, ?, ?)",
                (
                    normalize_ticker(ticker),
                    AssetType(asset_type).value,
                    AlertDirection(direction).value,
                    threshold,
                    utcnow().isoformat(),
                ),
            )
            self._conn.commit()
            row = self._conn.execute(
                f"SELECT {ALERT_COLUMNS} FROM price_alerts WHERE id = ?", (cur.lastrowid,)
            ).fetchone()
        return _row_to_alert(row)

    def delete_alert(self, alert_id: int) -> None:
        with self._lock:
            cur = self._conn.execute("DELETE FROM price_alerts WHERE id = ?", (alert_id,))
            self._conn.commit()
        if cur.rowcount == 0:
            raise NotFoundError(f"alert {alert_id} not found")

    def mark_alert_triggered(self, alert_id: int, triggered_at: datetime) -> None:
        with self._lock:
            self._conn.execute(
                "UPDATE price_alerts SET triggered = 1, triggered_at = ? WHERE id = ?",
                (triggered_at.isoformat(), alert_id),
            )
            self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()
