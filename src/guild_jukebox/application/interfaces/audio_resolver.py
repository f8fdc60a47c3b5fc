"""Port interface for resolving queries and seeds into playable tracks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from guild_jukebox.domain.shared.types import NonEmptyStr, PositiveInt

if TYPE_CHECKING:
    from ...domain.music.entities import Track


class AudioResolver(ABC):
    """Interface for turning free text, URLs, and channel seeds into candidates.

    Implementations never raise for lookup failures; they log and return an
    empty list so a failed lookup only fails the enqueue that asked for it.
    """

    @abstractmethod
    async def resolve(self, query: NonEmptyStr, limit: PositiveInt = 5) -> list["Track"]:
        """Return ordered candidates for a query or URL, possibly empty."""
        ...

    @abstractmethod
    async def fetch_backlog(self, seed: NonEmptyStr) -> list["Track"]:
        """Return every track listed under a channel or playlist seed."""
        ...

    @abstractmethod
    def is_url(self, query: NonEmptyStr) -> bool:
        ...
