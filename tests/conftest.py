import asyncio
from collections.abc import Callable

import pytest
import pytest_asyncio

from guild_jukebox.application.interfaces.audio_resolver import AudioResolver
from guild_jukebox.application.interfaces.audio_sink import AudioSink
from guild_jukebox.application.interfaces.stream_provider import AudioStream, StreamProvider
from guild_jukebox.config.settings import IdleSettings, ThemedLoopSettings
from guild_jukebox.domain.music.entities import Track
from guild_jukebox.domain.music.retry_policy import RetryPolicy
from guild_jukebox.domain.music.value_objects import SinkStatus
from guild_jukebox.domain.shared.events import EventBus

GUILD_ID = 111111111
CHANNEL_ID = 222222222


# ============================================================================
# Fakes
# ============================================================================


class FakeStream(AudioStream):
    def __init__(self, locator: str) -> None:
        self.locator = locator
        self._closed = False

    def read(self, size: int = -1) -> bytes:
        return b""

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed


class FakeStreamProvider(StreamProvider):
    """Opens fake streams; per-locator outcomes can be scripted.

    An outcome is either an exception instance (raised) or ``None`` (success).
    Unscripted opens succeed.
    """

    def __init__(self) -> None:
        self.outcomes: dict[str, list[BaseException | None]] = {}
        self.opened: list[str] = []
        self.streams: list[FakeStream] = []
        self.gate: asyncio.Event | None = None

    def script(self, locator: str, *outcomes: BaseException | None) -> None:
        self.outcomes[locator] = list(outcomes)

    async def open_stream(self, track: Track) -> AudioStream:
        self.opened.append(track.locator)
        if self.gate is not None:
            await self.gate.wait()

        pending = self.outcomes.get(track.locator)
        if pending:
            outcome = pending.pop(0)
            if outcome is not None:
                raise outcome

        stream = FakeStream(track.locator)
        self.streams.append(stream)
        return stream


class FakeSink(AudioSink):
    """Records calls and mimics discord.py's asynchronous ``after`` callback."""

    def __init__(self, *, auto_start: bool = True, channel_id: int | None = CHANNEL_ID) -> None:
        self.auto_start = auto_start
        self.played: list[FakeStream] = []
        self.gains: list[float] = []
        self.statuses: list[SinkStatus] = []
        self.stops = 0
        self.connected = True
        self.disconnects = 0
        self._channel_id = channel_id
        self._on_status: Callable[[SinkStatus], None] | None = None
        self._playing = False
        self._paused = False

    def play(self, stream, *, gain, on_status) -> None:
        self.played.append(stream)
        self.gains.append(gain)
        self._playing = True
        self._paused = False

        def report(status: SinkStatus) -> None:
            self.statuses.append(status)
            on_status(status)

        self._on_status = report
        if self.auto_start:
            report(SinkStatus.STARTED)

    def finish(self, status: SinkStatus = SinkStatus.ENDED) -> None:
        """Simulate the current stream running out."""
        assert self._on_status is not None
        callback, self._on_status = self._on_status, None
        self._playing = self._paused = False
        callback(status)

    def stop(self) -> None:
        self.stops += 1
        callback, self._on_status = self._on_status, None
        self._playing = self._paused = False
        if callback is not None:
            asyncio.get_running_loop().call_soon(callback, SinkStatus.ENDED)

    def pause(self) -> bool:
        if not self._playing or self._paused:
            return False
        self._paused = True
        return True

    def resume(self) -> bool:
        if not self._paused:
            return False
        self._paused = False
        return True

    def set_gain(self, gain: float) -> bool:
        self.gains.append(gain)
        return self._playing

    @property
    def is_connected(self) -> bool:
        return self.connected

    @property
    def channel_id(self) -> int | None:
        return self._channel_id

    async def disconnect(self) -> None:
        self.disconnects += 1
        self.connected = False


class FakeResolver(AudioResolver):
    def __init__(self) -> None:
        self.results: dict[str, list[Track]] = {}
        self.backlog: list[Track] = []
        self.queries: list[str] = []
        self.seeds: list[str] = []

    async def resolve(self, query: str, limit: int = 5) -> list[Track]:
        self.queries.append(query)
        return [t.fresh_copy() for t in self.results.get(query, [])][:limit]

    async def fetch_backlog(self, seed: str) -> list[Track]:
        self.seeds.append(seed)
        return [t.fresh_copy() for t in self.backlog]

    def is_url(self, query: str) -> bool:
        return query.startswith(("http://", "https://"))


async def settle(rounds: int = 50) -> None:
    """Let scheduled tasks and callbacks run to quiescence."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def remote(title: str) -> Track:
    return Track.from_source(title, f"https://www.youtube.com/watch?v={title}")


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def sink() -> FakeSink:
    return FakeSink()


@pytest.fixture
def provider() -> FakeStreamProvider:
    return FakeStreamProvider()


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def retry_policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, retry_delay=0.0, skip_backoff=0.0)


@pytest.fixture
def themed_settings() -> ThemedLoopSettings:
    return ThemedLoopSettings(
        seed_url="https://www.youtube.com/@example/videos",
        initial_batch=2,
        refill_batch=2,
        low_water_mark=1,
        refill_interval_seconds=60.0,
    )


@pytest.fixture
def idle_settings() -> IdleSettings:
    return IdleSettings(grace_seconds=0.05)


@pytest.fixture
def local_track(tmp_path) -> Track:
    path = tmp_path / "clip.mp3"
    path.write_bytes(b"ID3")
    return Track.from_local("clip", path)


@pytest_asyncio.fixture
async def session(sink, provider, resolver, event_bus, retry_policy, themed_settings, idle_settings):
    import random

    from guild_jukebox.application.services.session import GuildSession

    session = GuildSession(
        guild_id=GUILD_ID,
        sink=sink,
        resolver=resolver,
        stream_provider=provider,
        retry_policy=retry_policy,
        event_bus=event_bus,
        themed_settings=themed_settings,
        idle_settings=idle_settings,
        rng=random.Random(0),
    )
    yield session
    await session.destroy()
