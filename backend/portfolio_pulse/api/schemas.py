"""Request payloads for the HTTP API."""

from __future__ import annotations

import math

from pydantic import BaseModel, field_validator, model_validator

from ..models import AlertDirection, AssetType, normalize_ticker


def _ticker(value: str) -> str:
    ticker = normalize_ticker(value)
    if not ticker:
        raise ValueError("ticker is required")
    return ticker


class HoldingCreate(BaseModel):
    ticker: str
    assetType: str
    quantity: float
    avgCost: float = 0.0

    @field_validator("ticker")
    @classmethod
    def _check_ticker(cls, v: str) -> str:
        return _ticker(v)

    @field_validator("assetType")
    @classmethod
    def _check_asset_type(cls, v: str) -> str:
        if v not in {t.value for t in AssetType}:
            raise ValueError("assetType must be stock or crypto")
        return v

    @field_validator("quantity")
    @classmethod
    def _check_quantity(cls, v: float) -> float:
        if not v > 0:
            raise ValueError("quantity must be positive")
        if not math.isfinite(v):
            raise ValueError("quantity must be finite")
        return v

    @field_validator("avgCost")
    @classmethod
    def _check_avg_cost(cls, v: float) -> float:
        if not v >= 0:
            raise ValueError("avgCost must not be negative")
        if not math.isfinite(v):
            raise ValueError("avgCost must be finite")
        return v

    @model_validator(mode="after")
    def _check_cost_basis(self) -> HoldingCreate:
        if not math.isfinite(self.quantity * self.avgCost):
            raise ValueError("quantity times avgCost is too large")
        return self


class AlertCreate(BaseModel):
    ticker: str
    assetType: str
    direction: str
    threshold: float

    @field_validator("ticker")
    @classmethod
    def _check_ticker(cls, v: str) -> str:
        return _ticker(v)

    @field_validator("assetType")
    @classmethod
    def _check_asset_type(cls, v: str) -> str:
        if v not in {t.value for t in AssetType}:
            raise ValueError("assetType must be stock or crypto")
        return v

    @field_validator("direction")
    @classmethod
    def _check_direction(cls, v: str) -> str:
        if v not in {d.value for d in AlertDirection}:
            raise ValueError("direction must be above or below")
        return v

    @field_validator("threshold")
    @classmethod
    def _check_threshold(cls, v: float) -> float:
        if not v > 0:
            raise ValueError("threshold must be positive")
        if not math.isfinite(v):
            raise ValueError("threshold must be finite")
        return v
