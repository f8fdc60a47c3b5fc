"""Immutable value objects for the music bounded context."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from guild_jukebox.domain.shared.exceptions import ValidationError
from guild_jukebox.domain.shared.messages import ErrorMessages


@dataclass(frozen=True)
class Volume:
    """Playback gain in [0.0, 1.0], built from a user-facing percentage."""

    gain: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.gain <= 1.0:
            raise ValueError(ErrorMessages.INVALID_GAIN)

    @classmethod
    def from_percent(cls, percent: int | float) -> Volume:
        """Round *percent* to a whole number, clamp it to 0..100 and convert it to a gain.

        Raises:
            ValidationError: If *percent* is NaN or infinite.
        """
        if not math.isfinite(percent):
            raise ValidationError(
                ErrorMessages.INVALID_VOLUME.format(percent=percent), field="volume"
            )
        clamped = max(0, min(100, round(percent)))
        return cls(clamped / 100)

    @property
    def percent(self) -> int:
        return round(self.gain * 100)

    def __float__(self) -> float:
        return self.gain

    def __str__(self) -> str:
        return f"{self.percent}%"


class PlaybackState(Enum):
    """Playback loop state with enforced transitions.

    State transitions:
    - IDLE -> RESOLVING (queue head popped, stream requested)
    - RESOLVING -> PLAYING (sink reported the stream started)
    - RESOLVING -> IDLE (stream discarded, skip or stop)
    - PLAYING -> PAUSED (pause)
    - PAUSED -> PLAYING (resume)
    - PLAYING/PAUSED -> IDLE (track ended, skip or stop)
    """

    IDLE = "idle"
    RESOLVING = "resolving"
    PLAYING = "playing"
    PAUSED = "paused"

    def can_transition_to(self, target: PlaybackState) -> bool:
        """Check if transition to target state is valid."""
        valid_transitions = {
            PlaybackState.IDLE: {PlaybackState.RESOLVING},
            PlaybackState.RESOLVING: {PlaybackState.PLAYING, PlaybackState.IDLE},
            PlaybackState.PLAYING: {PlaybackState.PAUSED, PlaybackState.IDLE},
            PlaybackState.PAUSED: {PlaybackState.PLAYING, PlaybackState.IDLE},
        }
        return target in valid_transitions.get(self, set())

    @property
    def is_active(self) -> bool:
        """True while a stream is loaded in the sink."""
        return self in {PlaybackState.PLAYING, PlaybackState.PAUSED}


class SinkStatus(Enum):
    """Status transitions reported by an audio sink."""

    STARTED = "started"
    ENDED = "ended"
    ERROR = "error"


class RetryDecision(Enum):
    """Outcome of a failed stream-open attempt."""

    RETRY = "retry"
    DISCARD = "discard"


class SessionDestroyReason(Enum):
    """Reasons a session can be destroyed."""

    LEAVE = "leave"
    INACTIVITY = "inactivity"
    SHUTDOWN = "shutdown"
    DISCONNECT = "disconnect"
