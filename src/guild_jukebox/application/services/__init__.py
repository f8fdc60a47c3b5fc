"""Application services: per-guild playback scheduling."""

from guild_jukebox.application.services.idle_monitor import IdleMonitor
from guild_jukebox.application.services.playback_loop import PlaybackLoop
from guild_jukebox.application.services.pool_refiller import PoolRefiller
from guild_jukebox.application.services.session import GuildSession
from guild_jukebox.application.services.session_registry import SessionRegistry

__all__ = [
    "GuildSession",
    "IdleMonitor",
    "PlaybackLoop",
    "PoolRefiller",
    "SessionRegistry",
]
