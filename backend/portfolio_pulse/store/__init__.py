"""Persistence for holdings and price alerts."""

from .interface import NotFoundError, Store
from .sqlite import SQLiteStore

__all__ = ["NotFoundError", "Store", "SQLiteStore"]
