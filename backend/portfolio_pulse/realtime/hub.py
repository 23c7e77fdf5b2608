"""Fan-out of portfolio snapshots to live subscribers."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Subscriber(Protocol):
    """What the hub needs from a connection. FastAPI's WebSocket fits."""

    async def send_text(self, data: str) -> None: ...

    async def close(self) -> None: ...


def serialize(value: Any) -> str:
    """JSON text for a model (via ``to_dict``) or a plain JSON-able value."""
    if hasattr(value, "to_dict"):
        value = value.to_dict()
    return json.dumps(value)


class Hub:
    """Set of live subscribers.

    The hub lock guards membership only. Pushing data happens outside it, so a
    slow or broken subscriber never stalls join/leave for the others. Each
    subscriber also has its own send lock, so pushes to one connection never
    overlap and its catch-up message always goes out before any broadcast.
    """

    def __init__(self) -> None:
        self._subscribers: dict[Subscriber, asyncio.Lock] = {}
        self._lock = asyncio.Lock()

    async def join(
        self,
        subscriber: Subscriber,
        catch_up: Callable[[], Awaitable[Any]] | None = None,
    ) -> None:
        """Add a subscriber, then push ``await catch_up()`` to it if given.

        Broadcasts that start while the catch-up is being built wait for it
        and reach the subscriber afterwards. Errors from ``catch_up`` or the
        push propagate; the subscriber stays joined.
        """
        send_lock = asyncio.Lock()
        await send_lock.acquire()
        try:
            async with self._lock:
                self._subscribers[subscriber] = send_lock
                total = len(self._subscribers)
            logger.info("Subscriber joined: total=%d", total)
            if catch_up is not None:
                value = await catch_up()
                await subscriber.send_text(serialize(value))
        finally:
            send_lock.release()

    async def leave(self, subscriber: Subscriber) -> None:
        """Remove a subscriber and close its connection. Safe to call twice."""
        async with self._lock:
            self._subscribers.pop(subscriber, None)
            total = len(self._subscribers)
        await self._close(subscriber)
        logger.info("Subscriber left: total=%d", total)

    async def broadcast(self, value: Any) -> int:
        """Push ``value`` to every subscriber. Returns the number of deliveries.

        Subscribers whose push fails are dropped from the hub.
        """
        async with self._lock:
            targets = list(self._subscribers.items())
        if not targets:
            return 0

        payload = serialize(value)
        stale: list[Subscriber] = []
        for subscriber, send_lock in targets:
            try:
                async with send_lock:
                    await subscriber.send_text(payload)
            except Exception as e:
                logger.debug("Push to subscriber failed: %s", e)
                stale.append(subscriber)

        if stale:
            async with self._lock:
                for subscriber in stale:
                    self._subscribers.pop(subscriber, None)
            for subscriber in stale:
                await self._close(subscriber)
            logger.info("Dropped %d stale subscribers", len(stale))

        return len(targets) - len(stale)

    async def send_to(self, subscriber: Subscriber, value: Any) -> None:
        """Push ``value`` to a single subscriber."""
        send_lock = self._subscribers.get(subscriber)
        if send_lock is None:
            await subscriber.send_text(serialize(value))
            return
        async with send_lock:
            await subscriber.send_text(serialize(value))

    async def close(self) -> None:
        """Disconnect everyone. Used at shutdown."""
        async with self._lock:
            targets = list(self._subscribers)
            self._subscribers.clear()
        for subscriber in targets:
            await self._close(subscriber)
        if targets:
            logger.info("Hub closed %d subscribers", len(targets))

    @property
    def subscribers(self) -> frozenset[Subscriber]:
        return frozenset(self._subscribers)

    def __len__(self) -> int:
        return len(self._subscribers)

    @staticmethod
    async def _close(subscriber: Subscriber) -> None:
        try:
            await subscriber.close()
        except Exception as e:
            logger.debug("Closing subscriber failed: %s", e)
