"""Decision Recorder — asyncio daemon that writes decision logs off the request path."""

import asyncio
import logging

from craftmatch.application.services.matching_analytics import MatchingAnalytics
from craftmatch.application.services.query_analysis_cache import QueryAnalysisCache
from craftmatch.domain.entities import DecisionLog

logger = logging.getLogger(__name__)


class DecisionRecorder:
    """Bounded queue in front of MatchingAnalytics.

    ``submit`` never blocks and never raises: when the queue is full the
    oldest pending decision is dropped and ``dropped_writes`` goes up. Runs as
    an asyncio.Task inside FastAPI's lifespan; every ``tick_seconds`` it also
    runs analytics maintenance and expired-cache cleanup.
    """

    def __init__(
        self,
        analytics: MatchingAnalytics,
        *,
        cache: QueryAnalysisCache | None = None,
        max_queue_size: int = 1000,
        tick_seconds: float = 60.0,
    ) -> None:
        self._analytics = analytics
        self._cache = cache
        self._queue: asyncio.Queue[DecisionLog] = asyncio.Queue(maxsize=max(1, max_queue_size))
        self._tick_seconds = tick_seconds
        self._running = False
        self._task: asyncio.Task | None = None
        self.dropped_writes = 0
        self.failed_writes = 0
        self.recorded = 0

    @property
    def queue_depth(self) -> int:
        return self._queue.qsize()

    @property
    def running(self) -> bool:
        return self._running

    def submit(self, decision: DecisionLog) -> None:
        """Enqueue a decision without waiting."""
        while True:
            try:
                self._queue.put_nowait(decision)
                return
            except asyncio.QueueFull:
                try:
                    dropped = self._queue.get_nowait()
                    self._queue.task_done()
                except asyncio.QueueEmpty:
                    continue
                self.dropped_writes += 1
                logger.warning(
                    "Decision queue full; dropped decision %s (%d dropped so far)",
                    dropped.id,
                    self.dropped_writes,
                )

    async def start(self) -> None:
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("DecisionRecorder started")

    async def stop(self) -> None:
        """Stop the worker, then write whatever is still queued."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self.flush()
        logger.info("DecisionRecorder stopped")

    async def flush(self) -> int:
        """Write every queued decision now. Returns how many were processed."""
        processed = 0
        while True:
            try:
                decision = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return processed
            await self._record(decision)
            self._queue.task_done()
            processed += 1

    async def _loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self._tick_seconds
        while self._running:
            timeout = max(0.0, next_tick - loop.time())
            try:
                decision = await asyncio.wait_for(self._queue.get(), timeout=timeout)
            except asyncio.TimeoutError:
                decision = None
            except asyncio.CancelledError:
                break

            if decision is not None:
                await self._record(decision)
                self._queue.task_done()

            if loop.time() >= next_tick:
                self._maintain()
                next_tick = loop.time() + self._tick_seconds

    async def _record(self, decision: DecisionLog) -> None:
        # Rule evaluation runs under the analytics lock; keep it off the event loop.
        try:
            await asyncio.to_thread(self._analytics.log, decision)
            self.recorded += 1
        except Exception:
            self.failed_writes += 1
            logger.exception("Failed to record decision %s", decision.id)

    def _maintain(self) -> None:
        try:
            self._analytics.tick()
            if self._cache is not None:
                self._cache.cleanup_expired()
        except Exception:
            logger.exception("Decision analytics maintenance failed")
