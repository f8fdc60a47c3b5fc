"""Port interface for opening live audio byte streams."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.music.entities import Track


class AudioStream(ABC):
    """A readable stream of encoded audio bytes.

    ``read`` is called from the audio transport's worker thread, so
    implementations must be plain blocking file-like objects.
    """

    @abstractmethod
    def read(self, size: int = -1) -> bytes:
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the underlying file or process. Safe to call more than once."""
        ...

    @property
    @abstractmethod
    def closed(self) -> bool:
        ...


class StreamProvider(ABC):
    """Interface for turning a track's locator into a live byte stream."""

    @abstractmethod
    async def open_stream(self, track: "Track") -> AudioStream:
        """Open the audio for *track*.

        Raises:
            StreamTransientError: The source is temporarily unavailable.
            StreamFatalError: The source can never be played.
            SpawnFailureError: The external provider process could not start.
        """
        ...
