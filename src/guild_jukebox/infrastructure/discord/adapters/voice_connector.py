"""Discord voice connector: joins channels and hands back audio sinks."""

from __future__ import annotations

import asyncio
import logging

import discord

from guild_jukebox.application.interfaces.audio_sink import AudioSink, VoiceConnector
from guild_jukebox.config.settings import AudioSettings
from guild_jukebox.domain.shared.exceptions import VoiceConnectionError
from guild_jukebox.domain.shared.messages import LogTemplates
from guild_jukebox.infrastructure.audio.ffmpeg_sink import DiscordAudioSink, FFmpegConfig

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT: float = 10.0


class DiscordVoiceConnector(VoiceConnector):
    def __init__(self, bot: discord.Client, settings: AudioSettings | None = None) -> None:
        self._bot = bot
        self._settings = settings or AudioSettings()
        self._ffmpeg_config = FFmpegConfig.from_settings(self._settings)

    def _get_voice_client(self, guild_id: int) -> discord.VoiceClient | None:
        guild = self._bot.get_guild(guild_id)
        if not guild:
            return None

        vc = guild.voice_client
        return vc if isinstance(vc, discord.VoiceClient) else None

    async def connect(self, guild_id: int, channel_id: int) -> AudioSink:
        guild = self._bot.get_guild(guild_id)
        if not guild:
            logger.warning(LogTemplates.GUILD_NOT_FOUND, guild_id)
            raise VoiceConnectionError(channel_id)

        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            logger.warning(LogTemplates.CHANNEL_NOT_VOICE, channel_id)
            raise VoiceConnectionError(channel_id)

        try:
            async with asyncio.timeout(CONNECT_TIMEOUT):
                vc = await self._join(guild_id, channel)
            await self._ensure_self_deaf(guild, channel)
        except TimeoutError as e:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel_id)
            raise VoiceConnectionError(channel_id) from e
        except discord.Forbidden as e:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, channel_id)
            raise VoiceConnectionError(channel_id) from e
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            raise VoiceConnectionError(channel_id) from e

        logger.info(LogTemplates.VOICE_CONNECTED, channel.name, guild.name)
        return DiscordAudioSink(
            vc,
            settings=self._settings,
            config=self._ffmpeg_config,
            loop=asyncio.get_running_loop(),
        )

    async def _join(
        self,
        guild_id: int,
        channel: discord.VoiceChannel | discord.StageChannel,
    ) -> discord.VoiceClient:
        """Connect, or reuse/move a voice client left over from an earlier session."""
        vc = self._get_voice_client(guild_id)
        if vc is not None and not vc.is_connected():
            await vc.disconnect(force=True)
            vc = None

        if vc is None:
            return await channel.connect(self_deaf=True)
        if vc.channel is None or vc.channel.id != channel.id:
            await vc.move_to(channel)
        return vc

    async def _ensure_self_deaf(
        self,
        guild: discord.Guild,
        channel: discord.VoiceChannel | discord.StageChannel,
    ) -> None:
        """Ensure the bot is self-deafened in the guild's current voice connection."""
        try:
            await guild.change_voice_state(channel=channel, self_deaf=True)
        except Exception as exc:
            logger.debug(LogTemplates.VOICE_SELF_DEAFEN_FAILED, guild.id, exc)

    def count_listeners(self, guild_id: int) -> int:
        """Count non-bot members in the bot's voice channel."""
        vc = self._get_voice_client(guild_id)
        if not vc or not vc.channel:
            return 0
        return sum(1 for member in vc.channel.members if not member.bot)
