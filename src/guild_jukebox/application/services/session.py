"""Guild session: the composition root for one voice connection's playback."""

from __future__ import annotations

import logging
import random
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from ...domain.music.entities import Track
from ...domain.music.queue import TrackQueue
from ...domain.music.value_objects import PlaybackState, SessionDestroyReason, Volume
from ...domain.shared.events import SessionDestroyed
from ...domain.shared.exceptions import (
    ResolutionEmptyError,
    SessionNotFoundError,
    ValidationError,
)
from ...domain.shared.messages import LogTemplates
from .idle_monitor import IdleMonitor
from .playback_loop import PlaybackLoop
from .pool_refiller import PoolRefiller

if TYPE_CHECKING:
    from ...config.settings import IdleSettings, ThemedLoopSettings
    from ...domain.music.queue import TrackPool
    from ...domain.music.retry_policy import RetryPolicy
    from ...domain.shared.events import EventBus
    from ...domain.shared.types import DiscordSnowflake
    from ..interfaces.audio_resolver import AudioResolver
    from ..interfaces.audio_sink import AudioSink
    from ..interfaces.stream_provider import StreamProvider

logger = logging.getLogger(__name__)


class GuildSession:
    """Everything one guild needs to keep audio flowing.

    Owns the queue, the playback loop, the themed-loop refiller and the idle
    monitor, plus the volume. Command handlers only talk to this class; every
    failure they can see is a :class:`DomainError`.
    """

    def __init__(
        self,
        *,
        guild_id: DiscordSnowflake,
        sink: AudioSink,
        resolver: AudioResolver,
        stream_provider: StreamProvider,
        retry_policy: RetryPolicy,
        event_bus: EventBus,
        themed_settings: ThemedLoopSettings,
        idle_settings: IdleSettings,
        default_volume: float = 0.4,
        search_limit: int = 5,
        on_destroyed: Callable[[GuildSession], None] | None = None,
        teardown: Callable[[GuildSession, SessionDestroyReason], Awaitable[bool]] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._guild_id = guild_id
        self._sink = sink
        self._resolver = resolver
        self._event_bus = event_bus
        self._search_limit = search_limit
        self._on_destroyed = on_destroyed
        self._teardown = teardown

        self._volume = Volume(default_volume)
        self._destroyed = False
        self.text_channel_id: DiscordSnowflake | None = None

        self._queue = TrackQueue()
        self._loop = PlaybackLoop(
            guild_id=guild_id,
            queue=self._queue,
            sink=sink,
            stream_provider=stream_provider,
            retry_policy=retry_policy,
            event_bus=event_bus,
            gain=lambda: self._volume.gain,
        )
        self._refiller = PoolRefiller(
            guild_id=guild_id,
            resolver=resolver,
            enqueue=self.enqueue_resource,
            queue_length=lambda: len(self._queue),
            settings=themed_settings,
            rng=rng,
        )
        self._idle = IdleMonitor(
            guild_id=guild_id,
            grace_seconds=idle_settings.grace_seconds,
            on_timeout=self._on_idle_timeout,
        )

    # ─────────────────────────────────────────────────────────────────
    # Introspection
    # ─────────────────────────────────────────────────────────────────

    @property
    def guild_id(self) -> DiscordSnowflake:
        return self._guild_id

    @property
    def sink(self) -> AudioSink:
        return self._sink

    @property
    def state(self) -> PlaybackState:
        return self._loop.state

    @property
    def current(self) -> Track | None:
        return self._loop.current

    @property
    def queue(self) -> TrackQueue:
        return self._queue

    @property
    def pool(self) -> TrackPool:
        return self._refiller.pool

    @property
    def volume(self) -> Volume:
        return self._volume

    @property
    def playback(self) -> PlaybackLoop:
        return self._loop

    @property
    def refiller(self) -> PoolRefiller:
        return self._refiller

    @property
    def idle_monitor(self) -> IdleMonitor:
        return self._idle

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    # ─────────────────────────────────────────────────────────────────
    # Enqueue
    # ─────────────────────────────────────────────────────────────────

    async def search(self, text: str) -> list[Track]:
        """Resolve *text* into candidates without queueing anything.

        Raises:
            ResolutionEmptyError: If the resolver found nothing.
        """
        self._ensure_alive()
        candidates = await self._resolver.resolve(text, limit=self._search_limit)
        if not candidates:
            logger.info(LogTemplates.RESOLUTION_EMPTY, text)
            raise ResolutionEmptyError(text)
        return candidates

    async def enqueue_query(
        self,
        text: str,
        *,
        requested_by_id: DiscordSnowflake | None = None,
        requested_by_name: str | None = None,
    ) -> Track:
        """Resolve *text* and queue the best candidate."""
        candidates = await self.search(text)
        track = candidates[0]
        if requested_by_id is not None and requested_by_name:
            track = track.with_requester(requested_by_id, requested_by_name)
        self.enqueue_resource(track)
        return track

    def enqueue_resource(self, track: Track) -> int:
        """Queue *track* at the tail and start playback if the loop is idle.

        Returns:
            Zero-based position of the track in the queue.

        Raises:
            ValidationError: If the track is malformed or its local file is missing.
        """
        self._ensure_alive()
        self._validate(track)

        position = self._queue.append(track)
        logger.info(LogTemplates.QUEUE_ENQUEUED, track.title, position, self._guild_id)
        self._loop.trigger()
        return position

    def force_play_resource(self, track: Track) -> None:
        """Play *track* next, cutting off whatever is playing now."""
        self._ensure_alive()
        self._validate(track)
        self._loop.force(track)

    async def start_themed_loop(self, seed: str) -> int:
        """Start cycling through *seed*'s backlog.

        Returns:
            Pool size, or 0 if the backlog was empty and the loop did not start.
        """
        self._ensure_alive()
        return await self._refiller.start_loop(seed)

    # ─────────────────────────────────────────────────────────────────
    # Transport controls
    # ─────────────────────────────────────────────────────────────────

    def stop(self) -> int:
        """Clear the queue and pool, stop the themed loop and silence the sink."""
        self._ensure_alive()
        self._refiller.stop_loop()
        return self._loop.stop()

    def skip(self) -> Track | None:
        self._ensure_alive()
        return self._loop.skip()

    def pause(self) -> bool:
        self._ensure_alive()
        return self._loop.pause()

    def resume(self) -> bool:
        self._ensure_alive()
        return self._loop.resume()

    def set_volume(self, percent: int | float) -> int:
        """Clamp *percent* to 0..100 and apply it, live if a track is loaded.

        Returns:
            The percentage actually applied.

        Raises:
            ValidationError: If *percent* is not a finite number.
        """
        self._ensure_alive()
        self._volume = Volume.from_percent(percent)
        self._loop.apply_gain(self._volume.gain)
        logger.info(LogTemplates.PLAYBACK_VOLUME_CHANGED, self._volume.gain, self._guild_id)
        return self._volume.percent

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────

    def observe_occupancy(self, occupants: int) -> None:
        if self._destroyed:
            return
        self._idle.observe(occupants, connected=self._sink.is_connected)

    def touch(self) -> None:
        """Record user interaction, withdrawing any pending idle teardown."""
        self._idle.cancel()

    async def destroy(self, reason: SessionDestroyReason = SessionDestroyReason.LEAVE) -> bool:
        """Stop everything and release the voice connection. Idempotent.

        Returns:
            True if this call performed the teardown.
        """
        if self._destroyed:
            return False
        self._destroyed = True

        self._idle.cancel()
        self._refiller.stop_loop()
        await self._loop.close()

        try:
            await self._sink.disconnect()
        except Exception as e:
            logger.error(LogTemplates.VOICE_DISCONNECT_FAILED, self._guild_id, e)

        if self._on_destroyed is not None:
            self._on_destroyed(self)

        logger.info(LogTemplates.SESSION_DESTROYED, self._guild_id, reason.value)
        await self._event_bus.publish(
            SessionDestroyed(guild_id=self._guild_id, reason=reason.value)
        )
        return True

    async def _on_idle_timeout(self) -> None:
        # The owner serializes teardown against joins for the same guild.
        if self._teardown is not None:
            await self._teardown(self, SessionDestroyReason.INACTIVITY)
            return
        await self.destroy(SessionDestroyReason.INACTIVITY)

    def _ensure_alive(self) -> None:
        if self._destroyed:
            raise SessionNotFoundError(self._guild_id)

    def _validate(self, track: Track) -> None:
        try:
            track.validate_for_enqueue()
        except ValidationError as e:
            logger.warning(LogTemplates.QUEUE_REJECTED, track.title, self._guild_id, e)
            raise
