"""Refresh pipeline: holdings -> prices -> snapshot -> broadcast."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from enum import Enum

from ..market.cache import PriceCache
from ..models import PortfolioSnapshot
from ..realtime.hub import Hub
from ..store.interface import Store
from .snapshot import SnapshotBuilder

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


class RefreshPipeline:
    """Runs the refresh sequence on a timer and on demand.

    Both triggers run the same sequence: list holdings, refresh the price
    cache, build a snapshot (firing alerts), broadcast it. Each run is an
    independent best-effort attempt; a failed run is logged and the next
    trigger simply tries again.

    Runs are not serialized by default, so a timer run and a mutation-triggered
    run may interleave and be delivered out of order. Pass ``serialize=True``
    to queue runs one at a time.

    Lifecycle:
        pipeline = RefreshPipeline(store, cache, builder, hub, interval=30.0)
        await pipeline.start()       # first run fires immediately
        pipeline.trigger()           # after a mutation, not awaited
        await pipeline.stop(grace=8.0)
    """

    def __init__(
        self,
        store: Store,
        price_cache: PriceCache,
        builder: SnapshotBuilder,
        hub: Hub,
        interval: float = 30.0,
        serialize: bool = False,
    ) -> None:
        self._store = store
        self._cache = price_cache
        self._builder = builder
        self._hub = hub
        self._interval = interval
        self._gate: asyncio.Lock | None = asyncio.Lock() if serialize else None
        self._task: asyncio.Task | None = None
        self._pending: set[asyncio.Task] = set()
        self._active = 0

    @property
    def state(self) -> PipelineState:
        return PipelineState.REFRESHING if self._active else PipelineState.IDLE

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh_and_broadcast(self) -> PortfolioSnapshot:
        """Run the full sequence once. Errors propagate to the caller."""
        if self._gate is None:
            return await self._run()
        async with self._gate:
            return await self._run()

    async def _run(self) -> PortfolioSnapshot:
        self._active += 1
        try:
            holdings = await asyncio.to_thread(self._store.list_holdings)
            await self._cache.refresh(holdings)
            snapshot = await self._builder.build()
            delivered = await self._hub.broadcast(snapshot)
            logger.debug(
                "Refresh complete: %d holdings, %d alerts fired, %d subscribers",
                len(snapshot.holdings),
                len(snapshot.alerts_fired),
                delivered,
            )
            return snapshot
        finally:
            self._active -= 1

    async def build_snapshot(self) -> PortfolioSnapshot:
        """Snapshot from current cache contents without refreshing prices."""
        return await self._builder.build()

    def trigger(self) -> asyncio.Task:
        """Schedule a run without waiting for it.

        The returned task completes when the run is over and never raises;
        failures are logged. Await it (or wait_idle()) to synchronize.
        """
        return self._spawn("triggered")

    def _spawn(self, reason: str) -> asyncio.Task:
        task = asyncio.create_task(self._run_logged(reason), name=f"refresh-{reason}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for every run in flight, scheduled or triggered."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def start(self) -> None:
        """Start the interval scheduler. No-op if already running."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run_loop(), name="refresh-scheduler")
        logger.info("Refresh scheduler started: %.1fs interval", self._interval)

    async def stop(self, grace: float = 8.0) -> None:
        """Stop the scheduler and give in-flight runs ``grace`` seconds to finish.

        Only the wait between ticks is cancelled outright. A scheduled run that
        is already under way is finished or cancelled along with triggered runs.

        Safe to call multiple times.
        """
        if self._task and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None

        pending = list(self._pending)
        if pending:
            _, still_running = await asyncio.wait(pending, timeout=grace)
            for task in still_running:
                task.cancel()
            if still_running:
                await asyncio.gather(*still_running, return_exceptions=True)
                logger.warning("Cancelled %d refresh runs at shutdown", len(still_running))
        logger.info("Refresh scheduler stopped")

    async def _run_loop(self) -> None:
        """Run immediately, then every interval."""
        while True:
            # Shielded: cancelling the loop must not interrupt the run itself.
            await asyncio.shield(self._spawn("scheduled"))
            await asyncio.sleep(self._interval)

    async def _run_logged(self, reason: str) -> None:
        try:
            await self.refresh_and_broadcast()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Refresh (%s) failed", reason)
