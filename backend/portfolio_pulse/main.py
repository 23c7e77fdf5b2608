"""Application wiring and process entry point."""

from __future__ import annotations

import argparse
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .api import create_api_router, error_response, mount_spa
from .config import Settings, parse_addr
from .market import PriceCache, QuoteSources, create_quote_sources
from .portfolio import RefreshPipeline, SnapshotBuilder
from .realtime import Hub, create_stream_router
from .store import SQLiteStore, Store

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Every long-lived component, built once and shared by reference."""

    settings: Settings
    store: Store
    client: httpx.AsyncClient
    price_cache: PriceCache
    builder: SnapshotBuilder
    hub: Hub
    pipeline: RefreshPipeline


def build_services(
    settings: Settings,
    store: Store | None = None,
    sources: QuoteSources | None = None,
) -> Services:
    client = httpx.AsyncClient(timeout=settings.fetch_timeout)
    store = store if store is not None else SQLiteStore(settings.db_path)
    sources = sources if sources is not None else create_quote_sources(settings, client)

    price_cache = PriceCache(equity_source=sources.equity, crypto_source=sources.crypto)
    builder = SnapshotBuilder(store, price_cache)
    hub = Hub()
    pipeline = RefreshPipeline(store, price_cache, builder, hub, interval=settings.poll_interval)
    return Services(
        settings=settings,
        store=store,
        client=client,
        price_cache=price_cache,
        builder=builder,
        hub=hub,
        pipeline=pipeline,
    )


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid request"
    msg = str(errors[0].get("msg", "invalid request"))
    return msg.removeprefix("Value error, ")


def create_app(
    settings: Settings | None = None,
    store: Store | None = None,
    sources: QuoteSources | None = None,
    start_scheduler: bool = True,
) -> FastAPI:
    """Build the FastAPI app. ``store`` and ``sources`` may be injected for tests."""
    settings = settings or Settings.from_env()
    services = build_services(settings, store=store, sources=sources)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if start_scheduler:
            await services.pipeline.start()
        try:
            yield
        finally:
            await services.pipeline.stop(grace=settings.shutdown_grace)
            await services.hub.close()
            await services.client.aclose()
            services.store.close()
            logger.info("PortfolioPulse shut down")

    app = FastAPI(title="PortfolioPulse", lifespan=lifespan)
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return error_response(400, _validation_message(exc))

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(500, str(exc))

    app.include_router(create_api_router(services.store, services.pipeline))
    app.include_router(create_stream_router(services.hub, services.pipeline))
    mount_spa(app, settings.static_dir)
    return app


def main(argv: list[str] | None = None) -> None:
    import uvicorn

    parser = argparse.ArgumentParser(prog="portfolio-pulse", description="PortfolioPulse backend")
    parser.add_argument("--addr", help="server listen address (default :8080)")
    parser.add_argument("--db", dest="db_path", help="sqlite database file")
    parser.add_argument("--poll-interval", type=float, help="seconds between scheduled refreshes")
    parser.add_argument("--static", dest="static_dir", help="directory with the built web UI")
    parser.add_argument("--simulate", action="store_true", default=None, help="use simulated prices")
    parser.add_argument("--log-level", help="logging level (default INFO)")
    args = parser.parse_args(argv)

    settings = Settings.from_env().with_overrides(**vars(args))
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host, port = parse_addr(settings.addr)

    app = create_app(settings)
    logger.info("PortfolioPulse backend listening on %s", settings.addr)
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
        timeout_graceful_shutdown=int(settings.shutdown_grace),
    )


if __name__ == "__main__":
    main()
