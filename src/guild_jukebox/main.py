#!/usr/bin/env python3
"""Entry point: configure logging, check the audio toolchain, run the bot."""

from __future__ import annotations

import json
import logging
import logging.config
import shutil
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from guild_jukebox.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from guild_jukebox.config.settings import AudioSettings

LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO", config_path: Path = LOGGING_CONFIG_PATH) -> None:
    """Apply *config_path* as a dictConfig, or ``basicConfig`` if it is unusable.

    *log_level* always wins over the root level in the file.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    try:
        logging.config.dictConfig(json.loads(config_path.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError, ValueError):
        logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        logger.warning("Could not load %s, falling back to basic config", config_path)
    logging.getLogger().setLevel(level)


def find_audio_tools(audio: AudioSettings) -> dict[str, str | None]:
    """Resolve the ffmpeg and yt-dlp executables, ``None`` where missing."""
    return {
        "ffmpeg": shutil.which(audio.ffmpeg_executable),
        "yt-dlp": shutil.which(audio.ytdlp_executable),
    }


def check_audio_tools(audio: AudioSettings) -> bool:
    """Log where the audio toolchain lives. False if ffmpeg is missing.

    Without yt-dlp only local files can play, so that is just a warning.
    """
    found = find_audio_tools(audio)
    if found["yt-dlp"] is None:
        logger.warning(LogTemplates.BOT_AUDIO_TOOL_MISSING, "yt-dlp", audio.ytdlp_executable)
    if found["ffmpeg"] is None:
        logger.error(LogTemplates.BOT_AUDIO_TOOL_MISSING, "ffmpeg", audio.ffmpeg_executable)
        return False
    logger.info(LogTemplates.BOT_AUDIO_TOOLS_FOUND, found["ffmpeg"], found["yt-dlp"])
    return True


def main() -> int:
    from guild_jukebox.config.settings import get_settings

    settings = get_settings()
    setup_logging("DEBUG" if settings.debug else settings.log_level)

    token = settings.discord.token.get_secret_value()
    if not token:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return 1
    if not check_audio_tools(settings.audio):
        return 1

    from guild_jukebox.config.container import create_container
    from guild_jukebox.infrastructure.discord.bot import create_bot

    logger.info(LogTemplates.BOT_STARTING.format(environment=settings.environment))
    bot = create_bot(create_container(settings), settings)

    try:
        logger.info(LogTemplates.BOT_STARTING_RUN)
        bot.run_with_graceful_shutdown(token)
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return 1
    else:
        logger.info(LogTemplates.BOT_STOPPED)
    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
