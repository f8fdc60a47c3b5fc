"""Discord cogs - command handlers."""

from guild_jukebox.infrastructure.discord.cogs.event_cog import EventCog
from guild_jukebox.infrastructure.discord.cogs.music_cog import MusicCog

__all__ = [
    "MusicCog",
    "EventCog",
]
