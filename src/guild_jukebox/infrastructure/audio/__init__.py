"""Audio infrastructure - yt-dlp resolver and stream provider, FFmpeg sink."""

from guild_jukebox.infrastructure.audio.ffmpeg_sink import DiscordAudioSink, FFmpegConfig
from guild_jukebox.infrastructure.audio.models import YtDlpEntry, YtDlpOpts
from guild_jukebox.infrastructure.audio.ytdlp_resolver import YtDlpResolver
from guild_jukebox.infrastructure.audio.ytdlp_stream_provider import (
    FileAudioStream,
    ProcessAudioStream,
    YtDlpStreamProvider,
)

__all__ = [
    "DiscordAudioSink",
    "FFmpegConfig",
    "FileAudioStream",
    "ProcessAudioStream",
    "YtDlpEntry",
    "YtDlpOpts",
    "YtDlpResolver",
    "YtDlpStreamProvider",
]
