"""HTTP endpoints for holdings, alerts and the portfolio snapshot."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse

from ..models import AlertDirection, AssetType
from ..portfolio.pipeline import RefreshPipeline
from ..store.interface import NotFoundError, Store
from .schemas import AlertCreate, HoldingCreate

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _check_id(raw: int) -> JSONResponse | None:
    if raw <= 0:
        return error_response(400, "invalid id")
    return None


def create_api_router(store: Store, pipeline: RefreshPipeline) -> APIRouter:
    """Create the REST router with references to the store and pipeline.

    Every mutation schedules a pipeline run and answers without waiting for it.
    Store failures surface as 500 with ``{"error": ...}``.
    """
    router = APIRouter(prefix="/api", tags=["portfolio"])

    @router.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    @router.get("/holdings")
    async def list_holdings() -> list[dict]:
        holdings = await asyncio.to_thread(store.list_holdings)
        return [h.to_dict() for h in holdings]

    @router.post("/holdings", status_code=201)
    async def create_holding(payload: HoldingCreate) -> dict:
        created = await asyncio.to_thread(
            store.create_holding,
            payload.ticker,
            AssetType(payload.assetType),
            payload.quantity,
            payload.avgCost,
        )
        logger.info("Holding created: id=%d %s", created.id, created.ticker)
        pipeline.trigger()
        return created.to_dict()

    @router.delete("/holdings/{holding_id}", status_code=204)
    async def delete_holding(holding_id: int) -> Response:
        if (bad := _check_id(holding_id)) is not None:
            return bad
        try:
            await asyncio.to_thread(store.delete_holding, holding_id)
        except NotFoundError:
            return error_response(404, "holding not found")
        pipeline.trigger()
        return Response(status_code=204)

    @router.get("/alerts")
    async def list_alerts() -> list[dict]:
        alerts = await asyncio.to_thread(store.list_alerts)
        return [a.to_dict() for a in alerts]

    @router.post("/alerts", status_code=201)
    async def create_alert(payload: AlertCreate) -> dict:
        created = await asyncio.to_thread(
            store.create_alert,
            payload.ticker,
            AssetType(payload.assetType),
            AlertDirection(payload.direction),
            payload.threshold,
        )
        logger.info("Alert created: id=%d %s %s %s", created.id, created.ticker, created.direction.value, created.threshold)
        pipeline.trigger()
        return created.to_dict()

    @router.delete("/alerts/{alert_id}", status_code=204)
    async def delete_alert(alert_id: int) -> Response:
        if (bad := _check_id(alert_id)) is not None:
            return bad
        try:
            await asyncio.to_thread(store.delete_alert, alert_id)
        except NotFoundError:
            return error_response(404, "alert not found")
        pipeline.trigger()
        return Response(status_code=204)

    @router.get("/portfolio")
    async def portfolio() -> dict:
        snapshot = await pipeline.build_snapshot()
        return snapshot.to_dict()

    return router
