"""Application interfaces (ports) for external collaborators."""

from guild_jukebox.application.interfaces.audio_resolver import AudioResolver
from guild_jukebox.application.interfaces.audio_sink import AudioSink, VoiceConnector
from guild_jukebox.application.interfaces.stream_provider import AudioStream, StreamProvider

__all__ = [
    "AudioResolver",
    "AudioSink",
    "AudioStream",
    "StreamProvider",
    "VoiceConnector",
]
