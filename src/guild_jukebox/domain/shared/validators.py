"""Shared validators for settings and domain models."""

from __future__ import annotations

from typing import Any

from guild_jukebox.domain.shared.messages import ErrorMessages


def validate_discord_snowflake(value: int) -> int:
    """Validate a Discord snowflake ID.

    Raises:
        ValueError: If the snowflake ID is not a positive 64-bit integer.
    """
    if value <= 0:
        raise ValueError(ErrorMessages.INVALID_SNOWFLAKE)
    if value >= 2**64:
        raise ValueError(ErrorMessages.SNOWFLAKE_TOO_LARGE)
    return value


def split_word_list(value: Any) -> tuple[str, ...]:
    """Normalise a comma-separated string or sequence into lowercase words.

    Blank entries are dropped and duplicates are removed, keeping first-seen order.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = list(value)

    words: list[str] = []
    for item in items:
        word = str(item).strip().lower()
        if word and word not in words:
            words.append(word)
    return tuple(words)
