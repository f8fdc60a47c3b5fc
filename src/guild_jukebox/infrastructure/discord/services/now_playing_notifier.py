"""Posts a short-lived "now playing" message when a remote track starts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from ....domain.shared.events import TrackStartedPlaying
from ....domain.shared.messages import DiscordUIMessages, LogTemplates

if TYPE_CHECKING:
    from discord.ext import commands

    from ....application.services.session_registry import SessionRegistry
    from ....domain.shared.events import EventBus

logger = logging.getLogger(__name__)


class NowPlayingNotifier:

    def __init__(
        self,
        *,
        bot: commands.Bot,
        registry: SessionRegistry,
        event_bus: EventBus,
        delete_after: float | None = None,
    ) -> None:
        self._bot = bot
        self._registry = registry
        self._bus = event_bus
        self._delete_after = delete_after or None
        self._started = False

    @property
    def is_started(self) -> bool:
        return self._started

    def start(self) -> None:
        if self._started:
            return
        self._bus.subscribe(TrackStartedPlaying, self._on_track_started)
        self._started = True

    def stop(self) -> None:
        if not self._started:
            return
        self._bus.unsubscribe(TrackStartedPlaying, self._on_track_started)
        self._started = False

    async def _on_track_started(self, event: TrackStartedPlaying) -> None:
        # Local clips (trigger words) play silently.
        if not event.source:
            return

        session = self._registry.get(event.guild_id)
        if session is None or session.text_channel_id is None:
            return

        channel = self._bot.get_channel(session.text_channel_id)
        if not isinstance(channel, discord.abc.Messageable):
            return

        content = DiscordUIMessages.NOW_PLAYING.format(
            title=event.track_title, source=event.source
        )
        try:
            await channel.send(content, delete_after=self._delete_after)
        except discord.HTTPException as e:
            logger.warning(LogTemplates.NOTIFY_FAILED, event.guild_id, e)
