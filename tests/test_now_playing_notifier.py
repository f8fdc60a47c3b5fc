"""Tests for NowPlayingNotifier."""

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from guild_jukebox.domain.shared.events import TrackStartedPlaying
from guild_jukebox.domain.shared.messages import DiscordUIMessages
from guild_jukebox.infrastructure.discord.services.now_playing_notifier import NowPlayingNotifier

from .conftest import GUILD_ID

TEXT_CHANNEL_ID = 444444444
SOURCE = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


@pytest.fixture
def channel() -> MagicMock:
    channel = MagicMock(spec=discord.TextChannel)
    channel.send = AsyncMock()
    return channel


@pytest.fixture
def bot(channel) -> MagicMock:
    bot = MagicMock()
    bot.get_channel.return_value = channel
    return bot


@pytest.fixture
def registry() -> MagicMock:
    registry = MagicMock()
    registry.get.return_value = MagicMock(text_channel_id=TEXT_CHANNEL_ID)
    return registry


@pytest.fixture
def notifier(bot, registry, event_bus) -> NowPlayingNotifier:
    notifier = NowPlayingNotifier(bot=bot, registry=registry, event_bus=event_bus, delete_after=300)
    notifier.start()
    yield notifier
    notifier.stop()


def started(source: str = SOURCE) -> TrackStartedPlaying:
    return TrackStartedPlaying(guild_id=GUILD_ID, track_title="Song", source=source)


class TestNowPlayingNotifier:
    @pytest.mark.asyncio
    async def test_posts_to_session_text_channel(self, notifier, bot, channel, event_bus):
        await event_bus.publish(started())

        bot.get_channel.assert_called_once_with(TEXT_CHANNEL_ID)
        channel.send.assert_awaited_once_with(
            DiscordUIMessages.NOW_PLAYING.format(title="Song", source=SOURCE), delete_after=300
        )

    @pytest.mark.asyncio
    async def test_local_clip_is_silent(self, notifier, channel, event_bus):
        await event_bus.publish(started(source=""))
        channel.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_text_channel_known(self, notifier, registry, channel, event_bus):
        registry.get.return_value = MagicMock(text_channel_id=None)

        await event_bus.publish(started())

        channel.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_session(self, notifier, registry, bot, event_bus):
        registry.get.return_value = None

        await event_bus.publish(started())

        bot.get_channel.assert_not_called()

    @pytest.mark.asyncio
    async def test_send_failure_is_logged(self, notifier, channel, event_bus, caplog):
        response = MagicMock(status=403, reason="Forbidden")
        channel.send.side_effect = discord.HTTPException(response, "Missing Access")

        await event_bus.publish(started())

        assert "Failed to send now-playing message" in caplog.text

    @pytest.mark.asyncio
    async def test_stop_unsubscribes(self, notifier, channel, event_bus):
        notifier.stop()
        notifier.stop()

        await event_bus.publish(started())

        assert not notifier.is_started
        channel.send.assert_not_awaited()
