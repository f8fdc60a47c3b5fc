"""Utility functions for formatting Discord messages."""

from __future__ import annotations

from collections.abc import Iterable
from functools import cache

SELECT_LABEL_LIMIT = 100
SELECT_DESCRIPTION_LIMIT = 100


@cache
def truncate(text: str, max_length: int = 90) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"


def find_trigger_word(content: str, words: Iterable[str]) -> str | None:
    """Return the first of *words* contained in *content*, ignoring case.

    Words are matched as substrings so that they also fire inside
    languages written without spaces.
    """
    lowered = content.casefold()
    for word in words:
        if word and word.casefold() in lowered:
            return word
    return None
