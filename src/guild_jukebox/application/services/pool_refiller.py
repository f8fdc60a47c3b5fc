"""Background refill of the play queue from a shuffled, rotating pool."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable
from typing import TYPE_CHECKING

from ...domain.music.queue import TrackPool
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...config.settings import ThemedLoopSettings
    from ...domain.music.entities import Track
    from ...domain.shared.types import DiscordSnowflake
    from ..interfaces.audio_resolver import AudioResolver

logger = logging.getLogger(__name__)


class PoolRefiller:
    """Keeps a themed session's queue topped up without manual intervention.

    ``start_loop`` loads a backlog for a seed, shuffles it into the pool and
    queues an initial batch. A periodic task then queues another batch whenever
    the queue runs low. Every track taken from the pool is rotated to its tail,
    so the backlog cycles until ``stop_loop`` discards it.
    """

    def __init__(
        self,
        *,
        guild_id: DiscordSnowflake,
        resolver: AudioResolver,
        enqueue: Callable[[Track], object],
        queue_length: Callable[[], int],
        settings: ThemedLoopSettings,
        rng: random.Random | None = None,
    ) -> None:
        self._guild_id = guild_id
        self._resolver = resolver
        self._enqueue = enqueue
        self._queue_length = queue_length
        self._settings = settings
        self._rng = rng or random.Random()

        self._pool = TrackPool()
        self._task: asyncio.Task[None] | None = None
        self._generation = 0

    @property
    def pool(self) -> TrackPool:
        return self._pool

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start_loop(self, seed: str) -> int:
        """Load *seed*'s backlog and start refilling.

        Returns:
            Size of the pool, or 0 when the backlog was empty and nothing started.
        """
        self.stop_loop()
        token = self._generation

        logger.info(LogTemplates.POOL_LOADING, seed, self._guild_id)
        backlog = await self._resolver.fetch_backlog(seed)

        if token != self._generation:
            logger.debug(LogTemplates.POOL_STALE_FETCH, self._guild_id)
            return 0
        if not backlog:
            logger.warning(LogTemplates.POOL_EMPTY, seed, self._guild_id)
            return 0

        backlog = list(backlog)
        self._rng.shuffle(backlog)
        self._pool = TrackPool(backlog)
        logger.info(LogTemplates.POOL_LOADED, len(self._pool), self._guild_id)

        self.fill(self._settings.initial_batch)
        self._task = asyncio.create_task(self._run_loop())
        return len(self._pool)

    def stop_loop(self) -> None:
        """Cancel the refill task and discard the pool. Idempotent."""
        self._generation += 1
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            logger.info(LogTemplates.POOL_STOPPED, self._guild_id)
        self._pool.clear()

    def fill(self, count: int) -> int:
        """Queue *count* tracks from the pool head, rotating each to the tail."""
        tracks = self._pool.take(count)
        for track in tracks:
            self._enqueue(track)
        if tracks:
            logger.info(
                LogTemplates.POOL_REFILLED, len(tracks), self._guild_id, self._queue_length()
            )
        return len(tracks)

    def refill_if_low(self) -> int:
        if self._queue_length() >= self._settings.low_water_mark:
            return 0
        return self.fill(self._settings.refill_batch)

    async def _run_loop(self) -> None:
        interval = self._settings.refill_interval_seconds

        while True:
            await asyncio.sleep(interval)
            try:
                self.refill_if_low()
            except Exception:
                logger.exception(LogTemplates.POOL_REFILL_FAILED, self._guild_id)
