"""Slash-command music cog delegating to guild sessions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from guild_jukebox.domain.music.value_objects import SessionDestroyReason
from guild_jukebox.domain.shared.exceptions import (
    ResolutionEmptyError,
    ValidationError,
    VoiceConnectionError,
)
from guild_jukebox.domain.shared.messages import DiscordUIMessages, ErrorMessages
from guild_jukebox.infrastructure.discord.views.track_select_view import TrackSelectView
from guild_jukebox.utils.reply import truncate

if TYPE_CHECKING:
    from ....application.services.session import GuildSession
    from ....config.container import Container
    from ....domain.music.entities import Track

logger = logging.getLogger(__name__)


class MusicCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    @property
    def _short_delay(self) -> float:
        return self.container.settings.discord.reply_delete_after_seconds

    @property
    def _long_delay(self) -> float:
        return self.container.settings.discord.long_reply_delete_after_seconds

    async def _send_ephemeral(self, interaction: discord.Interaction, message: str) -> None:
        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=True)
        else:
            await interaction.response.send_message(message, ephemeral=True)

    async def _reply(
        self,
        interaction: discord.Interaction,
        message: str,
        *,
        delete_after: float | None = None,
    ) -> None:
        """Send a public reply that removes itself after *delete_after* seconds."""
        delay = self._short_delay if delete_after is None else delete_after
        if interaction.response.is_done():
            sent = await interaction.followup.send(message, wait=True)
            if delay > 0:
                await sent.delete(delay=delay)
        else:
            await interaction.response.send_message(message, delete_after=delay or None)

    async def _get_member(self, interaction: discord.Interaction) -> discord.Member | None:
        if not interaction.guild:
            await self._send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
            return None

        user = interaction.user
        if not isinstance(user, discord.Member):
            await self._send_ephemeral(interaction, DiscordUIMessages.STATE_NEED_TO_BE_IN_VOICE)
            return None

        if not user.voice or not user.voice.channel:
            await self._send_ephemeral(interaction, DiscordUIMessages.STATE_NEED_TO_BE_IN_VOICE)
            return None

        return user

    async def _ensure_session(self, interaction: discord.Interaction) -> GuildSession | None:
        """Join the caller's voice channel (or reuse the live session)."""
        member = await self._get_member(interaction)
        if member is None:
            return None

        assert interaction.guild is not None
        assert member.voice is not None and member.voice.channel is not None

        try:
            session = await self.container.session_registry.join(
                interaction.guild.id, member.voice.channel.id
            )
        except VoiceConnectionError:
            await self._send_ephemeral(interaction, DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE)
            return None

        if interaction.channel_id is not None:
            session.text_channel_id = interaction.channel_id
        return session

    # ─────────────────────────────────────────────────────────────────
    # Connection
    # ─────────────────────────────────────────────────────────────────

    @app_commands.command(name="join", description="Join your voice channel.")
    async def join(self, interaction: discord.Interaction) -> None:
        # Voice connection can exceed the 3-second interaction deadline
        await interaction.response.defer()

        if await self._ensure_session(interaction) is None:
            return
        await self._reply(interaction, DiscordUIMessages.ACTION_JOINED)

    @app_commands.command(name="leave", description="Leave the voice channel.")
    async def leave(self, interaction: discord.Interaction) -> None:
        if await self._get_member(interaction) is None:
            return

        assert interaction.guild is not None

        destroyed = await self.container.session_registry.destroy(
            interaction.guild.id, SessionDestroyReason.LEAVE
        )
        if not destroyed:
            await self._send_ephemeral(interaction, DiscordUIMessages.ERROR_NO_SESSION)
            return
        await self._reply(interaction, DiscordUIMessages.ACTION_LEFT)

    # ─────────────────────────────────────────────────────────────────
    # Enqueue
    # ─────────────────────────────────────────────────────────────────

    @app_commands.command(name="play", description="Play a song by URL or search query.")
    @app_commands.describe(query="YouTube URL or search query")
    async def play(self, interaction: discord.Interaction, query: str) -> None:
        await interaction.response.defer()

        session = await self._ensure_session(interaction)
        if session is None:
            return

        try:
            candidates = await session.search(query)
        except ResolutionEmptyError:
            await self._reply(
                interaction, DiscordUIMessages.ERROR_NO_RESULTS, delete_after=self._long_delay
            )
            return

        if len(candidates) == 1:
            await self._enqueue(interaction, session, candidates[0])
            return

        async def on_choice(choice_interaction: discord.Interaction, track: Track) -> None:
            await self._on_candidate_chosen(choice_interaction, session, track)

        view = TrackSelectView(
            candidates=candidates,
            requester_id=interaction.user.id,
            on_choice=on_choice,
        )
        sent = await interaction.followup.send(
            DiscordUIMessages.ACTION_SELECT_CANDIDATE, view=view, wait=True
        )
        view.set_message(sent)

    def _with_requester(self, user: discord.abc.User, track: Track) -> Track:
        return track.with_requester(user.id, getattr(user, "display_name", None) or user.name)

    async def _enqueue(
        self, interaction: discord.Interaction, session: GuildSession, track: Track
    ) -> None:
        try:
            session.enqueue_resource(self._with_requester(interaction.user, track))
        except ValidationError as e:
            await self._send_ephemeral(
                interaction, DiscordUIMessages.ERROR_INVALID_TRACK.format(error=e.message)
            )
            return
        await self._reply(
            interaction,
            DiscordUIMessages.ACTION_ENQUEUED.format(title=truncate(track.title)),
            delete_after=self._long_delay,
        )

    async def _on_candidate_chosen(
        self, interaction: discord.Interaction, session: GuildSession, track: Track
    ) -> None:
        if session.is_destroyed:
            await interaction.response.edit_message(
                content=DiscordUIMessages.ERROR_NO_SESSION, view=None
            )
            return

        try:
            session.enqueue_resource(self._with_requester(interaction.user, track))
        except ValidationError as e:
            await interaction.response.edit_message(
                content=DiscordUIMessages.ERROR_INVALID_TRACK.format(error=e.message), view=None
            )
            return

        await interaction.response.edit_message(
            content=DiscordUIMessages.ACTION_ENQUEUED.format(title=truncate(track.title)),
            view=None,
        )
        if self._long_delay > 0 and interaction.message is not None:
            await interaction.message.delete(delay=self._long_delay)

    @app_commands.command(name="artist", description="Start the themed loop.")
    async def artist(self, interaction: discord.Interaction) -> None:
        await interaction.response.defer()

        session = await self._ensure_session(interaction)
        if session is None:
            return

        seed = self.container.settings.themed_loop.seed_url
        if not seed:
            await self._reply(interaction, DiscordUIMessages.ERROR_THEMED_LOOP_NOT_CONFIGURED)
            return

        count = await session.start_themed_loop(seed)
        if count == 0:
            await self._reply(
                interaction,
                DiscordUIMessages.ERROR_THEMED_LOOP_FAILED,
                delete_after=self._long_delay,
            )
            return

        await self._reply(
            interaction,
            DiscordUIMessages.ACTION_THEMED_LOOP_STARTED.format(count=count),
            delete_after=self._long_delay,
        )

    # ─────────────────────────────────────────────────────────────────
    # Transport
    # ─────────────────────────────────────────────────────────────────

    @app_commands.command(name="stop", description="Stop playback and clear the queue.")
    async def stop(self, interaction: discord.Interaction) -> None:
        await interaction.response.defer()

        session = await self._ensure_session(interaction)
        if session is None:
            return

        session.stop()
        await self._reply(interaction, DiscordUIMessages.ACTION_STOPPED)

    @app_commands.command(name="skip", description="Skip the current track.")
    async def skip(self, interaction: discord.Interaction) -> None:
        await interaction.response.defer()

        session = await self._ensure_session(interaction)
        if session is None:
            return

        skipped = session.skip()
        if skipped is None:
            await self._reply(interaction, DiscordUIMessages.STATE_NOTHING_PLAYING)
            return
        await self._reply(
            interaction, DiscordUIMessages.ACTION_SKIPPED.format(title=truncate(skipped.title))
        )

    @app_commands.command(name="pause", description="Pause playback.")
    async def pause(self, interaction: discord.Interaction) -> None:
        await interaction.response.defer()

        session = await self._ensure_session(interaction)
        if session is None:
            return

        if session.pause():
            await self._reply(interaction, DiscordUIMessages.ACTION_PAUSED)
        else:
            await self._reply(interaction, DiscordUIMessages.STATE_NOTHING_PLAYING)

    @app_commands.command(name="resume", description="Resume playback.")
    async def resume(self, interaction: discord.Interaction) -> None:
        await interaction.response.defer()

        session = await self._ensure_session(interaction)
        if session is None:
            return

        if session.resume():
            await self._reply(interaction, DiscordUIMessages.ACTION_RESUMED)
        else:
            await self._reply(interaction, DiscordUIMessages.STATE_NOTHING_PAUSED)

    @app_commands.command(name="volume", description="Set the volume (0-100).")
    @app_commands.describe(level="Volume percentage (0-100)")
    async def volume(
        self,
        interaction: discord.Interaction,
        level: app_commands.Range[int, 0, 100],
    ) -> None:
        await interaction.response.defer()

        session = await self._ensure_session(interaction)
        if session is None:
            return

        percent = session.set_volume(level)
        await self._reply(interaction, DiscordUIMessages.ACTION_VOLUME_SET.format(percent=percent))


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(MusicCog(bot, container))
