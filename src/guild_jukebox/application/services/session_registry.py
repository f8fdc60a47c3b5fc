"""Registry of live guild sessions."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterator
from typing import TYPE_CHECKING

from ...domain.music.value_objects import SessionDestroyReason
from ...domain.shared.events import SessionCreated
from ...domain.shared.exceptions import SessionNotFoundError
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.shared.events import EventBus
    from ...domain.shared.types import ChannelIdField, DiscordSnowflake
    from ..interfaces.audio_sink import AudioSink, VoiceConnector
    from .session import GuildSession

logger = logging.getLogger(__name__)

Teardown = Callable[["GuildSession", SessionDestroyReason], Awaitable[bool]]
SessionFactory = Callable[
    ["DiscordSnowflake", "AudioSink", Callable[["GuildSession"], None], Teardown],
    "GuildSession",
]


class SessionRegistry:
    """Creates a session on first join and forgets it once destroyed.

    At most one live session exists per guild. Joining a guild that already
    has one returns it and counts as user activity. Joins and teardowns for
    the same guild are serialized, so a join never reuses a session that is
    halfway through disconnecting.
    """

    def __init__(
        self,
        *,
        connector: VoiceConnector,
        session_factory: SessionFactory,
        event_bus: EventBus,
    ) -> None:
        self._connector = connector
        self._session_factory = session_factory
        self._event_bus = event_bus
        self._sessions: dict[DiscordSnowflake, GuildSession] = {}
        self._join_locks: defaultdict[DiscordSnowflake, asyncio.Lock] = defaultdict(asyncio.Lock)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._sessions

    def __iter__(self) -> Iterator[GuildSession]:
        return iter(list(self._sessions.values()))

    async def join(self, guild_id: DiscordSnowflake, channel_id: ChannelIdField) -> GuildSession:
        """Return the guild's session, connecting to *channel_id* if there is none.

        Raises:
            VoiceConnectionError: If a new connection could not be established.
        """
        async with self._join_locks[guild_id]:
            session = self._sessions.get(guild_id)
            if session is not None and not session.is_destroyed:
                session.touch()
                logger.debug(LogTemplates.SESSION_REUSED, guild_id)
                return session

            sink = await self._connector.connect(guild_id, channel_id)
            session = self._session_factory(guild_id, sink, self._forget, self._teardown)
            self._sessions[guild_id] = session
            logger.info(LogTemplates.SESSION_CREATED, guild_id)

        await self._event_bus.publish(SessionCreated(guild_id=guild_id, channel_id=channel_id))
        return session

    def get(self, guild_id: DiscordSnowflake) -> GuildSession | None:
        return self._sessions.get(guild_id)

    def require(self, guild_id: DiscordSnowflake) -> GuildSession:
        """Return the live session for *guild_id*.

        Raises:
            SessionNotFoundError: If the guild has no session.
        """
        session = self._sessions.get(guild_id)
        if session is None:
            logger.debug(LogTemplates.SESSION_NOT_FOUND, guild_id)
            raise SessionNotFoundError(guild_id)
        return session

    async def destroy(
        self,
        guild_id: DiscordSnowflake,
        reason: SessionDestroyReason = SessionDestroyReason.LEAVE,
    ) -> bool:
        async with self._join_locks[guild_id]:
            session = self._sessions.get(guild_id)
            if session is None:
                logger.debug(LogTemplates.SESSION_NOT_FOUND, guild_id)
                return False
            return await session.destroy(reason)

    async def close_all(self) -> int:
        """Destroy every session, used on shutdown."""
        sessions = list(self._sessions.values())
        for session in sessions:
            await self._teardown(session, SessionDestroyReason.SHUTDOWN)
        self._sessions.clear()
        logger.info(LogTemplates.SESSIONS_CLOSED, len(sessions))
        return len(sessions)

    async def _teardown(self, session: GuildSession, reason: SessionDestroyReason) -> bool:
        async with self._join_locks[session.guild_id]:
            return await session.destroy(reason)

    def _forget(self, session: GuildSession) -> None:
        if self._sessions.get(session.guild_id) is session:
            del self._sessions[session.guild_id]
