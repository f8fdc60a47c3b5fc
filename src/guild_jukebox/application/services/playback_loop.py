"""Per-session playback state machine.

All transitions run on the event loop thread. Opening a stream is the only
suspension point; every other transition is synchronous and therefore cannot
interleave with another. Work that outlives a transition (an in-flight stream
open, a scheduled advance, a sink callback) carries the generation it was
started under and is dropped if the loop has moved on since.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from functools import partial
from typing import TYPE_CHECKING, Any

from ...domain.music.value_objects import PlaybackState, RetryDecision, SinkStatus
from ...domain.shared.events import QueueExhausted, TrackDiscarded, TrackStartedPlaying
from ...domain.shared.exceptions import InvalidOperationError, StreamOpenError
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.music.entities import Track
    from ...domain.music.queue import TrackQueue
    from ...domain.music.retry_policy import RetryPolicy
    from ...domain.shared.events import EventBus
    from ...domain.shared.types import DiscordSnowflake
    from ..interfaces.audio_sink import AudioSink
    from ..interfaces.stream_provider import AudioStream, StreamProvider

logger = logging.getLogger(__name__)


class PlaybackLoop:
    """Decides what plays now for one guild and reacts to the sink's status."""

    def __init__(
        self,
        *,
        guild_id: DiscordSnowflake,
        queue: TrackQueue,
        sink: AudioSink,
        stream_provider: StreamProvider,
        retry_policy: RetryPolicy,
        event_bus: EventBus,
        gain: Callable[[], float],
    ) -> None:
        self._guild_id = guild_id
        self._queue = queue
        self._sink = sink
        self._stream_provider = stream_provider
        self._retry_policy = retry_policy
        self._event_bus = event_bus
        self._gain = gain

        self._state = PlaybackState.IDLE
        self._current: Track | None = None
        self._generation = 0
        self._closed = False
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def current(self) -> Track | None:
        return self._current

    # ─────────────────────────────────────────────────────────────────
    # Commands
    # ─────────────────────────────────────────────────────────────────

    def trigger(self) -> None:
        """Start the queue head if nothing is loaded."""
        if self._closed or self._state is not PlaybackState.IDLE or not self._queue:
            return
        self._spawn(self.play_next())

    def force(self, track: Track) -> None:
        """Put *track* at the queue head and cut the current track short."""
        self._queue.prepend(track)
        logger.info(LogTemplates.TRACK_FORCED, track.title, self._guild_id)
        if self._current is None:
            self.trigger()
        else:
            self.skip()

    def skip(self) -> Track | None:
        """Discard the current track regardless of remaining attempts and advance."""
        if self._current is None:
            return None

        skipped = self._abandon_current()
        if skipped is not None:
            logger.info(LogTemplates.TRACK_SKIPPED, skipped.title, self._guild_id)
        self._schedule_advance()
        return skipped

    def stop(self) -> int:
        """Clear the queue, silence the sink, and return to IDLE.

        Returns:
            Number of queued tracks that were dropped.
        """
        cleared = self._queue.clear()
        self._abandon_current()
        logger.info(LogTemplates.PLAYBACK_STOPPED, self._guild_id)
        if cleared:
            logger.info(LogTemplates.QUEUE_CLEARED, cleared, self._guild_id)
        return cleared

    def pause(self) -> bool:
        if self._state is not PlaybackState.PLAYING:
            return False
        if not self._sink.pause():
            return False
        self._transition(PlaybackState.PAUSED)
        logger.info(LogTemplates.PLAYBACK_PAUSED, self._guild_id)
        return True

    def resume(self) -> bool:
        if self._state is not PlaybackState.PAUSED:
            return False
        if not self._sink.resume():
            return False
        self._transition(PlaybackState.PLAYING)
        logger.info(LogTemplates.PLAYBACK_RESUMED, self._guild_id)
        return True

    def apply_gain(self, gain: float) -> bool:
        """Push *gain* to the live stream, if one is loaded."""
        if not self._state.is_active:
            return False
        return self._sink.set_gain(gain)

    async def close(self) -> None:
        """Stop playback and cancel every task this loop started."""
        if self._closed:
            return
        self.stop()
        self._closed = True

        current_task = asyncio.current_task()
        tasks = [task for task in self._tasks if task is not current_task]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ─────────────────────────────────────────────────────────────────
    # Transitions
    # ─────────────────────────────────────────────────────────────────

    async def play_next(self) -> None:
        """IDLE -> RESOLVING: pop the queue head and open its stream."""
        if self._closed or self._state is not PlaybackState.IDLE:
            return

        track = self._queue.pop_front()
        if track is None:
            self._current = None
            logger.info(LogTemplates.QUEUE_EMPTY, self._guild_id)
            await self._event_bus.publish(QueueExhausted(guild_id=self._guild_id))
            return

        self._generation += 1
        token = self._generation
        self._current = track
        self._transition(PlaybackState.RESOLVING)
        logger.info(LogTemplates.PLAYBACK_RESOLVING, track.title, self._guild_id)

        stream = await self._open_with_retry(track, token)

        if token != self._generation:
            if stream is not None:
                logger.debug(LogTemplates.PLAYBACK_STALE_STREAM, track.title, self._guild_id)
                _close_quietly(stream)
            return

        if stream is None:
            self._finish_current()
            self._schedule_advance(self._retry_policy.skip_backoff)
            await self._event_bus.publish(
                TrackDiscarded(
                    guild_id=self._guild_id,
                    track_title=track.title,
                    attempts=track.attempts,
                    reason="stream_open_failed",
                )
            )
            return

        try:
            self._sink.play(
                stream,
                gain=self._gain(),
                on_status=partial(self._on_sink_status, token),
            )
        except Exception as e:
            logger.error(LogTemplates.SINK_PLAY_FAILED, track.title, self._guild_id, e)
            _close_quietly(stream)
            if token == self._generation and self._current is track:
                self._finish_current()
                self._schedule_advance(self._retry_policy.skip_backoff)

    async def _open_with_retry(self, track: Track, token: int) -> AudioStream | None:
        """Open *track*'s stream, retrying in place until the policy gives up.

        Returns None when the track was discarded or the loop moved on.
        """
        while True:
            try:
                return await self._stream_provider.open_stream(track)
            except Exception as e:
                if token != self._generation:
                    return None
                if not isinstance(e, StreamOpenError):
                    logger.exception("Unexpected error opening stream for '%s'", track.title)

                decision = self._retry_policy.record_failure(track, e)
                if decision is RetryDecision.DISCARD:
                    if isinstance(e, StreamOpenError) and e.fatal:
                        logger.warning(LogTemplates.RETRY_FATAL, track.title, e)
                    else:
                        logger.warning(LogTemplates.RETRY_EXHAUSTED, track.title, track.attempts, e)
                    return None

                logger.info(
                    LogTemplates.RETRY_SCHEDULED,
                    track.title,
                    track.attempts,
                    self._retry_policy.max_attempts,
                    self._retry_policy.retry_delay,
                    e,
                )

            await asyncio.sleep(self._retry_policy.retry_delay)
            if token != self._generation:
                return None

    def _on_sink_status(self, token: int, status: SinkStatus) -> None:
        if token != self._generation:
            logger.debug(LogTemplates.SINK_STALE_STATUS, status.value, self._guild_id)
            return

        track = self._current
        if track is None or self._state is PlaybackState.IDLE:
            return

        if status is SinkStatus.STARTED:
            if self._state is PlaybackState.RESOLVING:
                self._transition(PlaybackState.PLAYING)
                logger.info(LogTemplates.PLAYBACK_STARTED, track.title, self._guild_id)
                if track.is_remote:
                    self._spawn(
                        self._event_bus.publish(
                            TrackStartedPlaying(
                                guild_id=self._guild_id,
                                track_title=track.title,
                                source=track.source or "",
                                requested_by_id=track.requested_by_id,
                            )
                        )
                    )
            return

        logger.info(LogTemplates.TRACK_FINISHED, track.title, self._guild_id)
        self._finish_current()
        self._schedule_advance()

    def _abandon_current(self) -> Track | None:
        """Invalidate in-flight work, drop ``current``, and silence the sink."""
        self._generation += 1
        dropped = self._current
        self._finish_current()
        try:
            self._sink.stop()
        except Exception as e:
            logger.error(LogTemplates.SINK_FAILED_STOP, e)
        return dropped

    def _finish_current(self) -> None:
        self._current = None
        if self._state is not PlaybackState.IDLE:
            self._transition(PlaybackState.IDLE)

    def _transition(self, target: PlaybackState) -> None:
        if not self._state.can_transition_to(target):
            raise InvalidOperationError(
                operation=f"transition to {target.value}",
                current_state=self._state.value,
            )
        self._state = target

    # ─────────────────────────────────────────────────────────────────
    # Task bookkeeping
    # ─────────────────────────────────────────────────────────────────

    def _schedule_advance(self, delay: float = 0.0) -> None:
        self._spawn(self._advance_after(delay, self._generation))

    async def _advance_after(self, delay: float, token: int) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        if token != self._generation:
            return
        await self.play_next()

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        if self._closed:
            coro.close()
            return
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(LogTemplates.PLAYBACK_ADVANCE_FAILED, self._guild_id, exc_info=exc)


def _close_quietly(stream: AudioStream) -> None:
    try:
        stream.close()
    except Exception as e:
        logger.debug(LogTemplates.SINK_STREAM_CLOSE_ERROR, e)
