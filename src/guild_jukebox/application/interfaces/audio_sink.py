"""Port interfaces for the voice connection that plays audio."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING

from guild_jukebox.domain.shared.types import ChannelIdField, DiscordSnowflake

if TYPE_CHECKING:
    from ...domain.music.value_objects import SinkStatus
    from .stream_provider import AudioStream

StatusCallback = Callable[["SinkStatus"], None]


class AudioSink(ABC):
    """One guild's voice connection, consuming one stream at a time.

    ``play`` must report ``SinkStatus.STARTED`` through *on_status* once the
    stream is accepted, then exactly one terminal status (``ENDED`` or
    ``ERROR``) when it finishes or is stopped. Callbacks are delivered on the
    event loop thread.
    """

    @abstractmethod
    def play(self, stream: "AudioStream", *, gain: float, on_status: StatusCallback) -> None:
        ...

    @abstractmethod
    def stop(self) -> None:
        ...

    @abstractmethod
    def pause(self) -> bool:
        ...

    @abstractmethod
    def resume(self) -> bool:
        ...

    @abstractmethod
    def set_gain(self, gain: float) -> bool:
        """Adjust the gain of the stream currently playing, without restarting it."""
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        ...

    @property
    @abstractmethod
    def channel_id(self) -> ChannelIdField | None:
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Leave the voice channel. Idempotent."""
        ...


class VoiceConnector(ABC):
    """Interface for joining voice channels."""

    @abstractmethod
    async def connect(self, guild_id: DiscordSnowflake, channel_id: ChannelIdField) -> AudioSink:
        """Join *channel_id* and return its sink.

        Raises:
            VoiceConnectionError: If the channel cannot be joined.
        """
        ...

    @abstractmethod
    def count_listeners(self, guild_id: DiscordSnowflake) -> int:
        """Count human members in the bot's voice channel for *guild_id*."""
        ...
