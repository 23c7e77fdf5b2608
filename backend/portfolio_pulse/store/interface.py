"""Abstract interface for holding and alert persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from ..models import AlertDirection, AssetType, Holding, PriceAlert


class NotFoundError(LookupError):
    """The requested row does not exist."""


class Store(ABC):
    """Contract for the relational store.

    Methods are synchronous and individually safe to call from several
    threads. Async callers go through ``asyncio.to_thread``. No operation
    spans more than one statement's worth of consistency.
    """

    @abstractmethod
    def list_holdings(self) -> list[Holding]:
        """All holdings ordered by id."""

    @abstractmethod
    def create_holding(
        self, ticker: str, asset_type: AssetType, quantity: float, avg_cost: float
    ) -> Holding:
        """Insert a holding and return it as stored."""

    @abstractmethod
    def delete_holding(self, holding_id: int) -> None:
        """Delete a holding. Raises NotFoundError if absent."""

    @abstractmethod
    def list_alerts(self) -> list[PriceAlert]:
        """All alerts ordered by id."""

    @abstractmethod
    def create_alert(
        self, ticker: str, asset_type: AssetType, direction: AlertDirection, threshold: float
    ) -> PriceAlert:
        """Insert an untriggered alert and return it as stored."""

    @abstractmethod
    def delete_alert(self, alert_id: int) -> None:
        """Delete an alert. Raises NotFoundError if absent."""

    @abstractmethod
    def mark_alert_triggered(self, alert_id: int, triggered_at: datetime) -> None:
        """Move an alert to the triggered state and record when."""

    def close(self) -> None:
        """Release underlying resources."""
