"""Inactivity deadline for a voice session."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import DiscordSnowflake

logger = logging.getLogger(__name__)


class IdleMonitor:
    """Tears a session down after its voice channel has been empty for a grace period.

    At most one deadline is pending at a time. Any observation of a listener,
    or an explicit :meth:`cancel`, withdraws it. A deadline that has expired
    stays withdrawable until the timeout callback claims it by calling
    :meth:`cancel` from inside the deadline task.
    """

    def __init__(
        self,
        *,
        guild_id: DiscordSnowflake,
        grace_seconds: float,
        on_timeout: Callable[[], Awaitable[None]],
    ) -> None:
        self._guild_id = guild_id
        self._grace_seconds = grace_seconds
        self._on_timeout = on_timeout
        self._deadline: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        return self._deadline is not None and not self._deadline.done()

    def observe(self, occupants: int, *, connected: bool = True) -> None:
        """React to a new listener count for the session's channel."""
        if not connected or occupants > 0:
            self.cancel()
            return
        if self.pending:
            return

        logger.info(LogTemplates.IDLE_SCHEDULED, self._guild_id, self._grace_seconds)
        self._deadline = asyncio.create_task(self._fire())

    def cancel(self) -> None:
        deadline, self._deadline = self._deadline, None
        if deadline is None or deadline.done():
            return
        # The deadline may be the caller (teardown cancelling its own monitor).
        if deadline is asyncio.current_task():
            return
        deadline.cancel()
        logger.debug(LogTemplates.IDLE_CANCELLED, self._guild_id)

    async def _fire(self) -> None:
        await asyncio.sleep(self._grace_seconds)
        logger.info(LogTemplates.IDLE_FIRED, self._guild_id)
        try:
            await self._on_timeout()
        except Exception:
            logger.exception("Idle teardown failed for guild %s", self._guild_id)
