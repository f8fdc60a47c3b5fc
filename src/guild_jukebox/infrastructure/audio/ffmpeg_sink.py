"""
FFmpeg Audio Sink

Plays piped audio streams through a discord.py voice client.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field

import discord

from guild_jukebox.application.interfaces.audio_sink import AudioSink, StatusCallback
from guild_jukebox.application.interfaces.stream_provider import AudioStream
from guild_jukebox.config.settings import AudioSettings
from guild_jukebox.domain.music.value_objects import SinkStatus
from guild_jukebox.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)


@dataclass
class FFmpegConfig:
    """Configuration for FFmpeg audio processing."""

    executable: str = "ffmpeg"
    before_options: str = "-nostdin"
    options: str = "-vn"
    extra_options: list[str] = field(default_factory=list)

    @classmethod
    def from_settings(cls, settings: AudioSettings) -> FFmpegConfig:
        return cls(
            executable=settings.ffmpeg_executable,
            before_options=settings.ffmpeg_options.get("before_options", ""),
            options=settings.ffmpeg_options.get("options", "-vn"),
        )

    def get_options(self) -> str:
        """Get FFmpeg options string."""
        return " ".join([self.options, *self.extra_options]).strip()


class _PlaybackHandle:
    """Delivers one stream's terminal status to the event loop, at most once."""

    def __init__(
        self,
        guild_id: int,
        loop: asyncio.AbstractEventLoop,
        stream: AudioStream,
        on_status: StatusCallback,
    ) -> None:
        self._guild_id = guild_id
        self._loop = loop
        self._stream = stream
        self._on_status = on_status
        self._lock = threading.Lock()
        self._finished = False

    def after(self, error: Exception | None = None) -> None:
        """discord.py ``after`` hook, called from the audio player thread."""
        with self._lock:
            if self._finished:
                return
            self._finished = True

        if error is not None:
            logger.warning(LogTemplates.SINK_ENDED, self._guild_id, error)
        try:
            self._stream.close()
        except Exception as e:
            logger.debug(LogTemplates.SINK_STREAM_CLOSE_ERROR, e)

        status = SinkStatus.ERROR if error is not None else SinkStatus.ENDED
        try:
            self._loop.call_soon_threadsafe(self._on_status, status)
        except RuntimeError:
            # Event loop already closed during shutdown.
            logger.debug(LogTemplates.SINK_STALE_STATUS, status.value, self._guild_id)


class DiscordAudioSink(AudioSink):
    """One guild's voice client playing FFmpeg-decoded, volume-scaled audio.

    Streams are fed to FFmpeg over stdin (``pipe=True``) and wrapped in a
    ``PCMVolumeTransformer`` so the gain can change while a track is playing.
    """

    def __init__(
        self,
        voice_client: discord.VoiceClient,
        settings: AudioSettings | None = None,
        config: FFmpegConfig | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._voice_client = voice_client
        self._settings = settings or AudioSettings()
        self._config = config or FFmpegConfig.from_settings(self._settings)
        self._loop = loop
        self._disconnected = False

    @property
    def voice_client(self) -> discord.VoiceClient:
        return self._voice_client

    @property
    def guild_id(self) -> int:
        return self._voice_client.guild.id

    def create_source(self, stream: AudioStream, gain: float) -> discord.PCMVolumeTransformer:
        """Create an audio source that decodes *stream* at *gain*."""
        source = discord.FFmpegPCMAudio(
            stream,  # type: ignore[arg-type]
            executable=self._config.executable,
            pipe=True,
            before_options=self._config.before_options or None,
            options=self._config.get_options() or None,
        )
        return discord.PCMVolumeTransformer(source, volume=gain)

    def play(self, stream: AudioStream, *, gain: float, on_status: StatusCallback) -> None:
        vc = self._voice_client
        if vc.is_playing() or vc.is_paused():
            vc.stop()

        loop = self._loop or asyncio.get_running_loop()
        source = self.create_source(stream, gain)
        handle = _PlaybackHandle(self.guild_id, loop, stream, on_status)

        try:
            vc.play(source, after=handle.after)
        except Exception:
            source.cleanup()
            raise

        logger.debug(LogTemplates.SINK_STARTED, getattr(stream, "pid", "file"), self.guild_id)
        on_status(SinkStatus.STARTED)

    def stop(self) -> None:
        vc = self._voice_client
        if vc.is_playing() or vc.is_paused():
            vc.stop()

    def pause(self) -> bool:
        try:
            if self._voice_client.is_playing():
                self._voice_client.pause()
                return True
            return False
        except Exception as e:
            logger.error(LogTemplates.SINK_FAILED_PAUSE, e)
            return False

    def resume(self) -> bool:
        try:
            if self._voice_client.is_paused():
                self._voice_client.resume()
                return True
            return False
        except Exception as e:
            logger.error(LogTemplates.SINK_FAILED_RESUME, e)
            return False

    def set_gain(self, gain: float) -> bool:
        try:
            source = self._voice_client.source
            if isinstance(source, discord.PCMVolumeTransformer):
                source.volume = max(0.0, min(1.0, gain))
                return True
            return False
        except Exception as e:
            logger.error(LogTemplates.SINK_FAILED_VOLUME, e)
            return False

    @property
    def is_connected(self) -> bool:
        return not self._disconnected and self._voice_client.is_connected()

    @property
    def channel_id(self) -> int | None:
        channel = self._voice_client.channel
        return channel.id if channel is not None else None

    async def disconnect(self) -> None:
        if self._disconnected:
            return
        self._disconnected = True

        self.stop()
        guild_id = self.guild_id
        try:
            await self._voice_client.disconnect(force=True)
            logger.info(LogTemplates.VOICE_DISCONNECTED, guild_id)
        except Exception as e:
            logger.error(LogTemplates.VOICE_DISCONNECT_FAILED, guild_id, e)
