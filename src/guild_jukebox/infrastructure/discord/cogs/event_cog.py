"""Discord event listeners for lifecycle, voice occupancy, and trigger words."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from guild_jukebox.domain.music.entities import Track
from guild_jukebox.domain.music.value_objects import SessionDestroyReason
from guild_jukebox.domain.shared.exceptions import ValidationError, VoiceConnectionError
from guild_jukebox.domain.shared.messages import ErrorMessages, LogTemplates
from guild_jukebox.utils.reply import find_trigger_word

if TYPE_CHECKING:
    from ....config.container import Container

logger = logging.getLogger(__name__)


class EventCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container
        self._resumed_logged_once = False

    @staticmethod
    def _is_bot_or_none(user: discord.abc.User | discord.Member | None) -> bool:
        return user is None or bool(getattr(user, "bot", False))

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle Events
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_connect(self) -> None:
        logger.info("WebSocket connected")

    @commands.Cog.listener()
    async def on_disconnect(self) -> None:
        logger.warning("WebSocket disconnected")

    @commands.Cog.listener()
    async def on_resumed(self) -> None:
        if not self._resumed_logged_once:
            logger.info("WebSocket session resumed")
            self._resumed_logged_once = True

    @commands.Cog.listener()
    async def on_guild_remove(self, guild: discord.Guild) -> None:
        logger.info("Left guild: %s (%s)", guild.name, guild.id)
        await self.container.session_registry.destroy(guild.id, SessionDestroyReason.DISCONNECT)

    # ─────────────────────────────────────────────────────────────────
    # Voice Events
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_voice_state_update(
        self, member: discord.Member, before: discord.VoiceState, after: discord.VoiceState
    ) -> None:
        guild_id = member.guild.id
        registry = self.container.session_registry
        session = registry.get(guild_id)
        if session is None or session.is_destroyed:
            return

        if self.bot.user is not None and member.id == self.bot.user.id and after.channel is None:
            # Kicked or disconnected from voice by someone else.
            await registry.destroy(guild_id, SessionDestroyReason.DISCONNECT)
            return

        bot_channel_id = session.sink.channel_id
        if bot_channel_id is None:
            return

        touched = any(
            state.channel is not None and state.channel.id == bot_channel_id
            for state in (before, after)
        )
        if not touched:
            return

        session.observe_occupancy(self.container.voice_connector.count_listeners(guild_id))

    # ─────────────────────────────────────────────────────────────────
    # Trigger Words
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        trigger = self.container.settings.trigger
        if not trigger.enabled or message.guild is None:
            return

        if self._is_bot_or_none(message.author):
            return

        if trigger.channel_id is not None and message.channel.id != trigger.channel_id:
            return

        word = find_trigger_word(message.content, trigger.words)
        if word is None:
            return

        author = message.author
        if not isinstance(author, discord.Member) or not author.voice or not author.voice.channel:
            return

        try:
            session = await self.container.session_registry.join(
                message.guild.id, author.voice.channel.id
            )
        except VoiceConnectionError as e:
            logger.warning("Trigger word ignored in guild %s: %s", message.guild.id, e.message)
            return

        track = Track.from_local(Path(trigger.audio_path).stem or word, trigger.audio_path)
        logger.info(LogTemplates.TRIGGER_MATCHED, message.guild.id, track.title)
        try:
            session.force_play_resource(track)
        except ValidationError:
            # Rejection already logged by the session.
            return


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(EventCog(bot, container))
