"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages
from ..domain.shared.validators import split_word_list, validate_discord_snowflake


class DiscordSettings(BaseModel):
    """Discord bot configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    guild_ids: tuple[int, ...] = Field(
        default_factory=tuple, validation_alias=AliasChoices("guild_ids", "guilds")
    )
    sync_on_startup: bool = True
    reply_delete_after_seconds: float = Field(default=5.0, ge=0.0)
    long_reply_delete_after_seconds: float = Field(default=10.0, ge=0.0)
    now_playing_delete_after_seconds: float = Field(default=300.0, ge=0.0)

    @field_validator("guild_ids", mode="before")
    @classmethod
    def validate_snowflake_ids(cls, v: tuple[int, ...] | list[int]) -> tuple[int, ...]:
        """Validate Discord snowflake IDs and convert lists to tuples."""
        if isinstance(v, list):
            v = tuple(v)
        for snowflake in v:
            validate_discord_snowflake(snowflake)
        return v


class AudioSettings(BaseModel):
    """Audio resolution, streaming and output configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    default_volume: float = Field(default=0.4, ge=0.0, le=1.0)
    search_limit: int = Field(default=5, ge=1, le=25)

    ytdlp_executable: str = "yt-dlp"
    ytdlp_format: str = "bestaudio"
    ytdlp_buffer_size: str = "16K"
    open_timeout_seconds: float = Field(default=20.0, gt=0.0)
    probe_bytes: int = Field(default=4096, ge=1)

    ffmpeg_executable: str = "ffmpeg"
    ffmpeg_options: dict[str, str] = Field(
        default_factory=lambda: {
            "before_options": "-nostdin",
            "options": "-vn",
        }
    )


class PlaybackSettings(BaseModel):
    """Retry and advance timing for the playback loop."""

    model_config = SettingsConfigDict(frozen=True)

    max_attempts: int = Field(default=3, ge=1, le=10)
    retry_delay_seconds: float = Field(default=0.5, ge=0.0, le=10.0)
    skip_backoff_seconds: float = Field(default=0.05, ge=0.0, le=5.0)


class ThemedLoopSettings(BaseModel):
    """Themed-loop (pool refill) configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    seed_url: str = Field(
        default="",
        validation_alias=AliasChoices("seed_url", "artist_url"),
    )
    initial_batch: int = Field(default=5, ge=1, le=50)
    refill_batch: int = Field(default=5, ge=1, le=50)
    low_water_mark: int = Field(default=3, ge=0, le=50)
    refill_interval_seconds: float = Field(default=10.0, gt=0.0)


class IdleSettings(BaseModel):
    """Empty-channel teardown configuration."""

    model_config = SettingsConfigDict(frozen=True)

    grace_seconds: float = Field(default=30.0, ge=0.0)


class TriggerSettings(BaseModel):
    """Words in a text channel that force a local clip to play."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    channel_id: int | None = None
    words: Annotated[tuple[str, ...], NoDecode] = Field(default_factory=tuple)
    audio_path: str = Field(
        default="",
        validation_alias=AliasChoices("audio_path", "local_audio"),
    )

    @field_validator("channel_id", mode="before")
    @classmethod
    def validate_channel_id(cls, v: Any) -> int | None:
        if v in (None, ""):
            return None
        return validate_discord_snowflake(int(v))

    @field_validator("words", mode="before")
    @classmethod
    def normalise_words(cls, v: Any) -> tuple[str, ...]:
        return split_word_list(v)

    @model_validator(mode="after")
    def require_audio_for_words(self) -> TriggerSettings:
        if self.words and not self.audio_path:
            raise ValueError(ErrorMessages.TRIGGER_AUDIO_PATH_REQUIRED)
        return self

    @property
    def enabled(self) -> bool:
        return bool(self.words and self.audio_path)


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - DISCORD__TOKEN, DISCORD__GUILD_IDS (JSON array), etc.
    - AUDIO__DEFAULT_VOLUME, PLAYBACK__MAX_ATTEMPTS, THEMED_LOOP__SEED_URL, ...
    - TRIGGER__WORDS (comma-separated), TRIGGER__AUDIO_PATH, TRIGGER__CHANNEL_ID
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    themed_loop: ThemedLoopSettings = Field(default_factory=ThemedLoopSettings)
    idle: IdleSettings = Field(default_factory=IdleSettings)
    trigger: TriggerSettings = Field(default_factory=TriggerSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels)
            )
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
