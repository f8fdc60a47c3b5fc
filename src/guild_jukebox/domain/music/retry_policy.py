"""Retry rules for failed stream-open attempts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from guild_jukebox.domain.music.entities import Track
from guild_jukebox.domain.music.value_objects import RetryDecision
from guild_jukebox.domain.shared.exceptions import StreamOpenError

DEFAULT_MAX_ATTEMPTS: Final[int] = 3
DEFAULT_RETRY_DELAY: Final[float] = 0.5
DEFAULT_SKIP_BACKOFF: Final[float] = 0.05


@dataclass(frozen=True)
class RetryPolicy:
    """Decides whether a track whose stream failed to open is retried or discarded.

    Every failure counts as one attempt. Fatal failures discard immediately;
    anything else is retried until ``max_attempts`` failures have accumulated.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY
    skip_backoff: float = DEFAULT_SKIP_BACKOFF

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.retry_delay < 0 or self.skip_backoff < 0:
            raise ValueError("delays cannot be negative")

    def record_failure(self, track: Track, error: BaseException) -> RetryDecision:
        """Count the failed attempt on *track* and decide what happens next.

        Errors that are not :class:`StreamOpenError` are unclassified provider
        bugs and are treated as transient.
        """
        track.attempts += 1

        if isinstance(error, StreamOpenError) and error.fatal:
            return RetryDecision.DISCARD
        if track.attempts >= self.max_attempts:
            return RetryDecision.DISCARD
        return RetryDecision.RETRY
