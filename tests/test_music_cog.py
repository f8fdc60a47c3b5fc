"""Tests for MusicCog slash commands against a real guild session."""

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from guild_jukebox.config.settings import Settings
from guild_jukebox.domain.music.value_objects import PlaybackState
from guild_jukebox.domain.shared.exceptions import VoiceConnectionError
from guild_jukebox.domain.shared.messages import DiscordUIMessages
from guild_jukebox.infrastructure.discord.cogs.music_cog import MusicCog
from guild_jukebox.infrastructure.discord.views.track_select_view import TrackSelectView

from .conftest import CHANNEL_ID, GUILD_ID, remote, settle

USER_ID = 555555555
TEXT_CHANNEL_ID = 444444444


@pytest.fixture
def container(session) -> MagicMock:
    container = MagicMock()
    container.settings = Settings(_env_file=None)
    container.session_registry.join = AsyncMock(return_value=session)
    container.session_registry.destroy = AsyncMock(return_value=True)
    return container


@pytest.fixture
def cog(container) -> MusicCog:
    return MusicCog(MagicMock(), container)


@pytest.fixture
def interaction() -> MagicMock:
    user = MagicMock(spec=discord.Member)
    user.id = USER_ID
    user.name = "alice"
    user.display_name = "Alice"
    user.voice.channel.id = CHANNEL_ID

    interaction = MagicMock()
    interaction.user = user
    interaction.guild.id = GUILD_ID
    interaction.channel_id = TEXT_CHANNEL_ID
    interaction.response.defer = AsyncMock()
    interaction.response.send_message = AsyncMock()
    interaction.response.is_done.return_value = True
    interaction.followup.send = AsyncMock(return_value=MagicMock(delete=AsyncMock()))
    return interaction


def sent_text(interaction) -> str:
    return interaction.followup.send.call_args.args[0]


class TestPlay:
    @pytest.mark.asyncio
    async def test_single_candidate_is_enqueued(self, cog, interaction, session, resolver):
        resolver.results["song"] = [remote("only")]

        await cog.play.callback(cog, interaction, "song")
        await settle()

        assert session.current.title == "only"
        assert session.current.requested_by_name == "Alice"
        assert session.text_channel_id == TEXT_CHANNEL_ID
        assert sent_text(interaction) == DiscordUIMessages.ACTION_ENQUEUED.format(title="only")

    @pytest.mark.asyncio
    async def test_several_candidates_offer_a_menu(self, cog, interaction, session, resolver):
        resolver.results["song"] = [remote("a"), remote("b"), remote("c")]

        await cog.play.callback(cog, interaction, "song")

        kwargs = interaction.followup.send.call_args.kwargs
        assert sent_text(interaction) == DiscordUIMessages.ACTION_SELECT_CANDIDATE
        assert isinstance(kwargs["view"], TrackSelectView)
        assert len(session.queue) == 0
        kwargs["view"].stop()

    @pytest.mark.asyncio
    async def test_no_results(self, cog, interaction, session):
        await cog.play.callback(cog, interaction, "nothing")

        assert sent_text(interaction) == DiscordUIMessages.ERROR_NO_RESULTS
        assert session.state is PlaybackState.IDLE

    @pytest.mark.asyncio
    async def test_caller_must_be_in_voice(self, cog, interaction, container):
        interaction.user.voice = None

        await cog.play.callback(cog, interaction, "song")

        container.session_registry.join.assert_not_awaited()
        interaction.followup.send.assert_awaited_once_with(
            DiscordUIMessages.STATE_NEED_TO_BE_IN_VOICE, ephemeral=True
        )

    @pytest.mark.asyncio
    async def test_voice_join_failure(self, cog, interaction, container):
        container.session_registry.join.side_effect = VoiceConnectionError(CHANNEL_ID)

        await cog.play.callback(cog, interaction, "song")

        interaction.followup.send.assert_awaited_once_with(
            DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE, ephemeral=True
        )


class TestTransport:
    @pytest.mark.asyncio
    async def test_skip(self, cog, interaction, session):
        session.enqueue_resource(remote("a"))
        await settle()

        await cog.skip.callback(cog, interaction)

        assert sent_text(interaction) == DiscordUIMessages.ACTION_SKIPPED.format(title="a")

    @pytest.mark.asyncio
    async def test_skip_with_nothing_playing(self, cog, interaction):
        await cog.skip.callback(cog, interaction)
        assert sent_text(interaction) == DiscordUIMessages.STATE_NOTHING_PLAYING

    @pytest.mark.asyncio
    async def test_volume(self, cog, interaction, session):
        await cog.volume.callback(cog, interaction, 65)

        assert session.volume.percent == 65
        assert sent_text(interaction) == DiscordUIMessages.ACTION_VOLUME_SET.format(percent=65)

    @pytest.mark.asyncio
    async def test_stop(self, cog, interaction, session):
        session.enqueue_resource(remote("a"))
        session.enqueue_resource(remote("b"))
        await settle()

        await cog.stop.callback(cog, interaction)
        await settle()

        assert len(session.queue) == 0
        assert session.state is PlaybackState.IDLE
        assert sent_text(interaction) == DiscordUIMessages.ACTION_STOPPED

    @pytest.mark.asyncio
    async def test_leave_without_session(self, cog, interaction, container):
        container.session_registry.destroy.return_value = False

        await cog.leave.callback(cog, interaction)

        interaction.followup.send.assert_awaited_once_with(
            DiscordUIMessages.ERROR_NO_SESSION, ephemeral=True
        )


class TestArtist:
    @pytest.mark.asyncio
    async def test_not_configured(self, cog, interaction):
        await cog.artist.callback(cog, interaction)
        assert sent_text(interaction) == DiscordUIMessages.ERROR_THEMED_LOOP_NOT_CONFIGURED

    @pytest.mark.asyncio
    async def test_starts_loop(self, cog, interaction, container, resolver, monkeypatch):
        monkeypatch.setenv("THEMED_LOOP__SEED_URL", "https://www.youtube.com/@band/videos")
        container.settings = Settings(_env_file=None)
        resolver.backlog = [remote(f"t{i}") for i in range(3)]

        await cog.artist.callback(cog, interaction)

        assert resolver.seeds == ["https://www.youtube.com/@band/videos"]
        assert sent_text(interaction) == DiscordUIMessages.ACTION_THEMED_LOOP_STARTED.format(count=3)

    @pytest.mark.asyncio
    async def test_empty_backlog(self, cog, interaction, container, monkeypatch):
        monkeypatch.setenv("THEMED_LOOP__SEED_URL", "https://www.youtube.com/@band/videos")
        container.settings = Settings(_env_file=None)

        await cog.artist.callback(cog, interaction)

        assert sent_text(interaction) == DiscordUIMessages.ERROR_THEMED_LOOP_FAILED
