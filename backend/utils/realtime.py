"""
In-process change notifications keyed by table name, and a refresher that
re-runs a query whenever a watched table changes.

Notifications carry no ordering guarantee and bursts coalesce: a subscriber
holds at most one pending notification, so several rapid changes produce a
single re-fetch. Every fetch is tagged with a generation number and results
older than the last delivered generation are dropped.
"""
import asyncio
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, Optional, Set, Tuple

logger = logging.getLogger(__name__)


def log_task_failure(task: asyncio.Task):
    """Done-callback for background tasks: log the error so it is not left unretrieved"""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error(f"Background task {task.get_name()} failed: {error!r}")


class Subscription:
    """Async iterator over table names that changed"""

    def __init__(self, feed: "ChangeFeed", tables: Tuple[str, ...]):
        self.feed = feed
        self.tables = tables
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=1)

    def notify(self, table: str):
        try:
            self.queue.put_nowait(table)
        except asyncio.QueueFull:
            # A refresh is already pending and will pick this change up
            pass

    def close(self):
        self.feed.unsubscribe(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close()

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        return await self.queue.get()


class ChangeFeed:
    def __init__(self):
        self._subscribers: Dict[str, Set[Subscription]] = defaultdict(set)

    def subscribe(self, *tables: str) -> Subscription:
        subscription = Subscription(self, tables)
        for table in tables:
            self._subscribers[table].add(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription):
        for table in subscription.tables:
            self._subscribers[table].discard(subscription)

    def publish(self, *tables: str):
        notified = set()
        for table in tables:
            for subscription in list(self._subscribers.get(table, ())):
                if subscription in notified:
                    continue
                subscription.notify(table)
                notified.add(subscription)
        if notified:
            logger.debug(f"Change on {', '.join(tables)} sent to {len(notified)} subscriber(s)")

    def subscriber_count(self, table: str) -> int:
        return len(self._subscribers.get(table, ()))


class LiveRefresher:
    """
    Runs `fetch` on demand and hands results to `deliver`, dropping any result
    whose generation is older than one already delivered.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[Any]],
        deliver: Callable[[int, Any], Awaitable[None]],
    ):
        self._fetch = fetch
        self._deliver = deliver
        self._generation = 0
        self._delivered = 0
        self._in_flight: Optional[asyncio.Task] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def delivered_generation(self) -> int:
        return self._delivered

    def next_generation(self) -> int:
        self._generation += 1
        return self._generation

    async def refresh(self, generation: int) -> bool:
        """Fetch and deliver; returns False when the result was stale"""
        result = await self._fetch()
        if generation <= self._delivered:
            logger.debug(f"Dropping stale refresh generation {generation} (delivered {self._delivered})")
            return False
        self._delivered = generation
        await self._deliver(generation, result)
        return True

    def trigger(self) -> asyncio.Task:
        """Start a refresh, cancelling the one still in flight"""
        if self._in_flight is not None and not self._in_flight.done():
            self._in_flight.cancel()
        self._in_flight = asyncio.create_task(self.refresh(self.next_generation()))
        self._in_flight.add_done_callback(log_task_failure)
        return self._in_flight

    async def run(self, subscription: Subscription):
        """Initial refresh, then one refresh per (coalesced) notification"""
        self.trigger()
        try:
            async for _table in subscription:
                self.trigger()
        finally:
            self.cancel()

    def cancel(self):
        if self._in_flight is not None and not self._in_flight.done():
            self._in_flight.cancel()


change_feed = ChangeFeed()
