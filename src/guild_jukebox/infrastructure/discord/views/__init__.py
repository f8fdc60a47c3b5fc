"""Discord UI views and components."""

from __future__ import annotations

from guild_jukebox.infrastructure.discord.views.base_view import BaseInteractiveView
from guild_jukebox.infrastructure.discord.views.track_select_view import (
    TrackSelect,
    TrackSelectView,
)

__all__ = [
    "BaseInteractiveView",
    "TrackSelect",
    "TrackSelectView",
]
