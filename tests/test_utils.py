"""Tests for logging, reply helpers and the entrypoint."""

import io
import logging
from unittest.mock import MagicMock, patch

import pytest

from guild_jukebox import main as entrypoint
from guild_jukebox.config.settings import AudioSettings
from guild_jukebox.utils.logging import ColoredFormatter
from guild_jukebox.utils.reply import find_trigger_word, truncate


class TtyStream(io.StringIO):
    def isatty(self) -> bool:
        return True


def make_record(level: int = logging.WARNING) -> logging.LogRecord:
    return logging.LogRecord("guild_jukebox.test", level, __file__, 1, "hello %s", ("world",), None)


class TestColoredFormatter:
    def test_plain_when_not_a_tty(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        formatter = ColoredFormatter("%(levelname)s %(message)s", stream=io.StringIO())

        assert formatter.format(make_record()) == "WARNING hello world"

    def test_colors_levelname_on_a_tty(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        formatter = ColoredFormatter("%(levelname)s %(message)s", stream=TtyStream())
        record = make_record()

        output = formatter.format(record)

        assert output.startswith(ColoredFormatter.COLORS[logging.WARNING])
        assert output.endswith("hello world")
        assert record.levelname == "WARNING"

    def test_no_color_env_wins(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        formatter = ColoredFormatter("%(levelname)s", stream=TtyStream())

        assert formatter.format(make_record(logging.ERROR)) == "ERROR"


class TestReplyHelpers:
    def test_truncate(self):
        assert truncate("short") == "short"
        assert truncate("x" * 20, 10) == "x" * 9 + "…"

    @pytest.mark.parametrize(
        ("content", "expected"),
        [
            ("Hello there", "hello"),
            ("say PING now", "ping"),
            ("こんにちはhelloです", "hello"),
            ("nothing here", None),
            ("", None),
        ],
    )
    def test_find_trigger_word(self, content, expected):
        assert find_trigger_word(content, ("hello", "ping")) == expected


class TestEntrypoint:
    @pytest.fixture(autouse=True)
    def restore_root_level(self):
        root = logging.getLogger()
        level = root.level
        yield
        root.setLevel(level)

    def test_setup_logging_falls_back_without_config(self, tmp_path):
        entrypoint.setup_logging("DEBUG", config_path=tmp_path / "missing.json")
        assert logging.getLogger().level == logging.DEBUG

    def test_main_requires_token(self, caplog):
        settings = MagicMock()
        settings.debug = False
        settings.log_level = "INFO"
        settings.discord.token.get_secret_value.return_value = ""

        with (
            patch("guild_jukebox.config.settings.get_settings", return_value=settings),
            patch.object(entrypoint, "setup_logging"),
            patch("guild_jukebox.infrastructure.discord.bot.create_bot") as create_bot,
        ):
            assert entrypoint.main() == 1

        create_bot.assert_not_called()

    def test_main_runs_bot(self):
        settings = MagicMock()
        settings.debug = True
        settings.discord.token.get_secret_value.return_value = "token"

        with (
            patch("guild_jukebox.config.settings.get_settings", return_value=settings),
            patch.object(entrypoint, "setup_logging") as setup_logging,
            patch.object(entrypoint, "check_audio_tools", return_value=True),
            patch("guild_jukebox.config.container.create_container") as create_container,
            patch("guild_jukebox.infrastructure.discord.bot.create_bot") as create_bot,
        ):
            assert entrypoint.main() == 0

        setup_logging.assert_called_once_with("DEBUG")
        create_bot.assert_called_once_with(create_container.return_value, settings)
        create_bot.return_value.run_with_graceful_shutdown.assert_called_once_with("token")

    def test_main_refuses_to_start_without_ffmpeg(self):
        settings = MagicMock()
        settings.debug = False
        settings.log_level = "INFO"
        settings.discord.token.get_secret_value.return_value = "token"

        with (
            patch("guild_jukebox.config.settings.get_settings", return_value=settings),
            patch.object(entrypoint, "setup_logging"),
            patch.object(entrypoint, "check_audio_tools", return_value=False) as check,
            patch("guild_jukebox.infrastructure.discord.bot.create_bot") as create_bot,
        ):
            assert entrypoint.main() == 1

        check.assert_called_once_with(settings.audio)
        create_bot.assert_not_called()

    def test_main_reports_crash(self):
        settings = MagicMock()
        settings.debug = False
        settings.log_level = "INFO"
        settings.discord.token.get_secret_value.return_value = "token"

        with (
            patch("guild_jukebox.config.settings.get_settings", return_value=settings),
            patch.object(entrypoint, "setup_logging"),
            patch.object(entrypoint, "check_audio_tools", return_value=True),
            patch("guild_jukebox.config.container.create_container"),
            patch("guild_jukebox.infrastructure.discord.bot.create_bot") as create_bot,
        ):
            create_bot.return_value.run_with_graceful_shutdown.side_effect = RuntimeError("gateway")
            assert entrypoint.main() == 1


class TestAudioToolCheck:
    @pytest.fixture
    def audio(self) -> AudioSettings:
        return AudioSettings(ffmpeg_executable="my-ffmpeg", ytdlp_executable="my-yt-dlp")

    def test_all_tools_present(self, audio, caplog):
        caplog.set_level(logging.INFO)
        with patch.object(entrypoint.shutil, "which", side_effect=lambda name: f"/usr/bin/{name}"):
            assert entrypoint.check_audio_tools(audio) is True

        assert "/usr/bin/my-ffmpeg" in caplog.text
        assert "/usr/bin/my-yt-dlp" in caplog.text

    def test_missing_ytdlp_only_warns(self, audio, caplog):
        which = {"my-ffmpeg": "/usr/bin/my-ffmpeg"}
        with patch.object(entrypoint.shutil, "which", side_effect=which.get):
            assert entrypoint.check_audio_tools(audio) is True

        assert "'my-yt-dlp' not found on PATH" in caplog.text

    def test_missing_ffmpeg_fails(self, audio, caplog):
        with patch.object(entrypoint.shutil, "which", return_value=None):
            assert entrypoint.check_audio_tools(audio) is False
            assert entrypoint.find_audio_tools(audio) == {"ffmpeg": None, "yt-dlp": None}

        assert "'my-ffmpeg' not found on PATH" in caplog.text
