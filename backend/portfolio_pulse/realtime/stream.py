"""WebSocket endpoint for live portfolio snapshots."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from .hub import Hub

if TYPE_CHECKING:
    from ..portfolio.pipeline import RefreshPipeline

logger = logging.getLogger(__name__)


def create_stream_router(hub: Hub, pipeline: RefreshPipeline) -> APIRouter:
    """Create the WebSocket router with references to the hub and pipeline.

    This factory pattern lets us inject dependencies without globals.
    """
    router = APIRouter(tags=["streaming"])

    @router.websocket("/ws")
    async def stream_portfolio(websocket: WebSocket) -> None:
        """Live snapshot feed.

        On connect the client gets the current snapshot right away, then one
        message per pipeline run:

            {"holdings": [...], "totalValue": 15400.0, ..., "updatedAt": "..."}

        Inbound messages are read only to notice the disconnect.
        """
        await websocket.accept()
        client = f"{websocket.client.host}:{websocket.client.port}" if websocket.client else "unknown"
        logger.info("WebSocket client connected: %s", client)
        try:
            await hub.join(websocket, catch_up=pipeline.build_snapshot)
        except WebSocketDisconnect:
            await hub.leave(websocket)
            return
        except Exception:
            logger.exception("Initial snapshot for %s failed", client)

        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.info("WebSocket client disconnected: %s", client)
        finally:
            await hub.leave(websocket)

    return router
