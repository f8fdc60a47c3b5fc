"""
Shared Domain Kernel

Contains exceptions, events, and constrained types shared across the package.
"""

from guild_jukebox.domain.shared.exceptions import (
    DomainError,
    InvalidOperationError,
    ResolutionEmptyError,
    SessionNotFoundError,
    SpawnFailureError,
    StreamFatalError,
    StreamOpenError,
    StreamTransientError,
    ValidationError,
    VoiceConnectionError,
)

__all__ = [
    "DomainError",
    "InvalidOperationError",
    "ValidationError",
    "ResolutionEmptyError",
    "SessionNotFoundError",
    "VoiceConnectionError",
    "StreamOpenError",
    "StreamTransientError",
    "StreamFatalError",
    "SpawnFailureError",
]
