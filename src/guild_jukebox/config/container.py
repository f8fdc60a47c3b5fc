"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for the event bus, adapters and session registry.
Components are created on-demand and cached for reuse throughout the application.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.interfaces.audio_resolver import AudioResolver
    from ..application.interfaces.audio_sink import AudioSink, VoiceConnector
    from ..application.interfaces.stream_provider import StreamProvider
    from ..application.services.session import GuildSession
    from ..application.services.session_registry import SessionRegistry
    from ..domain.music.retry_policy import RetryPolicy
    from ..domain.music.value_objects import SessionDestroyReason
    from ..domain.shared.events import EventBus
    from ..domain.shared.types import DiscordSnowflake
    from ..infrastructure.discord.services.now_playing_notifier import NowPlayingNotifier
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    This container manages all application dependencies and their lifecycle.
    Components are lazily initialized when first accessed.
    """

    settings: Settings
    _bot: Bot | None = None

    # Cross-cutting
    _event_bus: EventBus | None = None
    _retry_policy: RetryPolicy | None = None

    # Infrastructure adapters
    _audio_resolver: AudioResolver | None = None
    _stream_provider: StreamProvider | None = None
    _voice_connector: VoiceConnector | None = None

    # Application services
    _session_registry: SessionRegistry | None = None

    # Event subscribers
    _now_playing_notifier: NowPlayingNotifier | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        """Get the Discord bot instance."""
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    # === Cross-cutting ===

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            from ..domain.shared.events import EventBus

            self._event_bus = EventBus()
        return self._event_bus

    @property
    def retry_policy(self) -> RetryPolicy:
        if self._retry_policy is None:
            from ..domain.music.retry_policy import RetryPolicy

            playback = self.settings.playback
            self._retry_policy = RetryPolicy(
                max_attempts=playback.max_attempts,
                retry_delay=playback.retry_delay_seconds,
                skip_backoff=playback.skip_backoff_seconds,
            )
        return self._retry_policy

    # === Infrastructure Adapters ===

    @property
    def audio_resolver(self) -> AudioResolver:
        """Get the audio resolver."""
        if self._audio_resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpResolver

            self._audio_resolver = YtDlpResolver(self.settings.audio)
        return self._audio_resolver

    @property
    def stream_provider(self) -> StreamProvider:
        """Get the stream provider."""
        if self._stream_provider is None:
            from ..infrastructure.audio.ytdlp_stream_provider import YtDlpStreamProvider

            self._stream_provider = YtDlpStreamProvider(self.settings.audio)
        return self._stream_provider

    @property
    def voice_connector(self) -> VoiceConnector:
        """Get the voice connector."""
        if self._voice_connector is None:
            from ..infrastructure.discord.adapters.voice_connector import (
                DiscordVoiceConnector,
            )

            self._voice_connector = DiscordVoiceConnector(self.bot, self.settings.audio)
        return self._voice_connector

    # === Application Services ===

    @property
    def session_registry(self) -> SessionRegistry:
        """Get the registry of live guild sessions."""
        if self._session_registry is None:
            from ..application.services.session_registry import SessionRegistry

            self._session_registry = SessionRegistry(
                connector=self.voice_connector,
                session_factory=self.create_session,
                event_bus=self.event_bus,
            )
        return self._session_registry

    def create_session(
        self,
        guild_id: DiscordSnowflake,
        sink: AudioSink,
        on_destroyed: Callable[[GuildSession], None],
        teardown: Callable[[GuildSession, SessionDestroyReason], Awaitable[bool]] | None = None,
    ) -> GuildSession:
        """Build a session for a freshly connected sink."""
        from ..application.services.session import GuildSession

        return GuildSession(
            guild_id=guild_id,
            sink=sink,
            resolver=self.audio_resolver,
            stream_provider=self.stream_provider,
            retry_policy=self.retry_policy,
            event_bus=self.event_bus,
            themed_settings=self.settings.themed_loop,
            idle_settings=self.settings.idle,
            default_volume=self.settings.audio.default_volume,
            search_limit=self.settings.audio.search_limit,
            on_destroyed=on_destroyed,
            teardown=teardown,
        )

    # === Event Subscribers ===

    @property
    def now_playing_notifier(self) -> NowPlayingNotifier:
        if self._now_playing_notifier is None:
            from ..infrastructure.discord.services.now_playing_notifier import (
                NowPlayingNotifier,
            )

            self._now_playing_notifier = NowPlayingNotifier(
                bot=self.bot,
                registry=self.session_registry,
                event_bus=self.event_bus,
                delete_after=self.settings.discord.now_playing_delete_after_seconds,
            )
        return self._now_playing_notifier

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Start cross-cutting subscribers."""
        self.now_playing_notifier.start()

    async def shutdown(self) -> None:
        """Close every session and detach subscribers."""
        try:
            if self._now_playing_notifier is not None:
                self._now_playing_notifier.stop()
        except Exception as exc:
            logger.warning("Failed stopping now-playing notifier: %r", exc)

        if self._session_registry is not None:
            await self._session_registry.close_all()

        if self._event_bus is not None:
            self._event_bus.clear()


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
