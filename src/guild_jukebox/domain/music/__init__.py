"""
Music Bounded Context

Domain logic for tracks, the play queue, the themed pool, and retry rules.
"""

from guild_jukebox.domain.music.entities import Track
from guild_jukebox.domain.music.queue import TrackPool, TrackQueue
from guild_jukebox.domain.music.retry_policy import RetryPolicy
from guild_jukebox.domain.music.value_objects import (
    PlaybackState,
    RetryDecision,
    SessionDestroyReason,
    SinkStatus,
    Volume,
)

__all__ = [
    # Entities
    "Track",
    # Containers
    "TrackQueue",
    "TrackPool",
    # Policies
    "RetryPolicy",
    # Value Objects
    "PlaybackState",
    "RetryDecision",
    "SessionDestroyReason",
    "SinkStatus",
    "Volume",
]
