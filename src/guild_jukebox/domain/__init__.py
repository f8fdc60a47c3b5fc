"""
Domain Layer

Contains pure playback logic:
- shared/: Cross-cutting exceptions, events, and types
- music/: Tracks, queue, pool, and retry rules
"""

from guild_jukebox.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
