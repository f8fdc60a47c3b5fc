"""Tests for PoolRefiller."""

import asyncio
import random

import pytest
import pytest_asyncio

from guild_jukebox.application.services.pool_refiller import PoolRefiller
from guild_jukebox.config.settings import ThemedLoopSettings
from guild_jukebox.domain.music.queue import TrackQueue

from .conftest import GUILD_ID, remote, settle

SEED = "https://www.youtube.com/@example/videos"


@pytest.fixture
def queue() -> TrackQueue:
    return TrackQueue()


@pytest_asyncio.fixture
async def refiller(resolver, queue, themed_settings):
    refiller = PoolRefiller(
        guild_id=GUILD_ID,
        resolver=resolver,
        enqueue=queue.append,
        queue_length=lambda: len(queue),
        settings=themed_settings,
        rng=random.Random(0),
    )
    yield refiller
    refiller.stop_loop()


class TestStartLoop:
    @pytest.mark.asyncio
    async def test_loads_shuffled_pool_and_initial_batch(self, refiller, resolver, queue):
        resolver.backlog = [remote(f"t{i}") for i in range(6)]

        size = await refiller.start_loop(SEED)

        assert size == 6
        assert resolver.seeds == [SEED]
        assert len(queue) == 2
        assert sorted(t.title for t in refiller.pool) == sorted(f"t{i}" for i in range(6))
        assert refiller.is_running

    @pytest.mark.asyncio
    async def test_empty_backlog_starts_nothing(self, refiller, resolver, queue):
        resolver.backlog = []

        size = await refiller.start_loop(SEED)

        assert size == 0
        assert len(queue) == 0
        assert not refiller.is_running

    @pytest.mark.asyncio
    async def test_restart_replaces_previous_loop(self, refiller, resolver, queue):
        resolver.backlog = [remote(f"t{i}") for i in range(4)]
        await refiller.start_loop(SEED)
        first_task = refiller._task

        await refiller.start_loop(SEED)
        await settle()

        assert first_task.cancelled()
        assert refiller.is_running
        assert len(refiller.pool) == 4

    @pytest.mark.asyncio
    async def test_stop_during_fetch_discards_result(self, refiller, resolver, queue):
        gate = asyncio.Event()
        original = resolver.fetch_backlog

        async def slow_fetch(seed):
            await gate.wait()
            return await original(seed)

        resolver.fetch_backlog = slow_fetch
        resolver.backlog = [remote("a"), remote("b")]

        pending = asyncio.create_task(refiller.start_loop(SEED))
        await settle()
        refiller.stop_loop()
        gate.set()

        assert await pending == 0
        assert len(queue) == 0
        assert len(refiller.pool) == 0
        assert not refiller.is_running


class TestRefill:
    @pytest.mark.asyncio
    async def test_refill_only_below_low_water_mark(self, refiller, resolver, queue):
        resolver.backlog = [remote(f"t{i}") for i in range(6)]
        await refiller.start_loop(SEED)
        assert len(queue) == 2

        assert refiller.refill_if_low() == 0

        queue.pop_front()
        queue.pop_front()
        assert refiller.refill_if_low() == 2
        assert len(queue) == 2

    @pytest.mark.asyncio
    async def test_rotation_repeats_only_after_whole_pool(self, refiller, resolver, queue):
        size = 5
        resolver.backlog = [remote(f"t{i}") for i in range(size)]
        await refiller.start_loop(SEED)

        titles = [t.title for t in queue]
        while len(titles) < size * 2:
            queue.clear()
            refiller.fill(2)
            titles.extend(t.title for t in queue)

        assert len(set(titles[:size])) == size
        assert titles[size : size * 2] == titles[:size]

    @pytest.mark.asyncio
    async def test_enqueued_tracks_are_fresh_copies(self, refiller, resolver, queue):
        resolver.backlog = [remote("a")]
        await refiller.start_loop(SEED)

        first = queue.pop_front()
        first.attempts = 3
        refiller.fill(1)

        assert queue.pop_front().attempts == 0

    @pytest.mark.asyncio
    async def test_periodic_task_refills(self, resolver, queue):
        settings = ThemedLoopSettings(
            initial_batch=1, refill_batch=1, low_water_mark=1, refill_interval_seconds=0.01
        )
        refiller = PoolRefiller(
            guild_id=GUILD_ID,
            resolver=resolver,
            enqueue=queue.append,
            queue_length=lambda: len(queue),
            settings=settings,
        )
        resolver.backlog = [remote("a"), remote("b")]
        await refiller.start_loop(SEED)
        queue.clear()

        await asyncio.sleep(0.05)

        assert len(queue) == 1
        refiller.stop_loop()

    @pytest.mark.asyncio
    async def test_stop_loop_clears_pool_and_is_idempotent(self, refiller, resolver):
        resolver.backlog = [remote("a"), remote("b")]
        await refiller.start_loop(SEED)

        refiller.stop_loop()
        refiller.stop_loop()

        assert len(refiller.pool) == 0
        assert not refiller.is_running
        assert refiller.fill(3) == 0
