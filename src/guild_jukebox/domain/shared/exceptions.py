"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """Raised when a track is malformed or references a missing local resource."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class ResolutionEmptyError(DomainError):
    """Raised when the resolver finds no playable candidates for a query."""

    def __init__(self, query: str, message: str | None = None) -> None:
        msg = message or f"No playable source found for '{query}'"
        super().__init__(msg, code="RESOLUTION_EMPTY")
        self.query = query


class SessionNotFoundError(DomainError):
    """Raised when an operation targets a guild without a live session."""

    def __init__(self, guild_id: int, message: str | None = None) -> None:
        msg = message or f"No active session for guild {guild_id}"
        super().__init__(msg, code="SESSION_NOT_FOUND")
        self.guild_id = guild_id


class VoiceConnectionError(DomainError):
    """Raised when the bot cannot join a voice channel."""

    def __init__(self, channel_id: int, message: str | None = None) -> None:
        msg = message or f"Could not connect to voice channel {channel_id}"
        super().__init__(msg, code="VOICE_CONNECTION_FAILED")
        self.channel_id = channel_id


class StreamOpenError(DomainError):
    """Base class for failures while opening an audio stream."""

    fatal: bool = False

    def __init__(self, source: str, message: str | None = None, code: str | None = None) -> None:
        msg = message or f"Could not open stream for {source}"
        super().__init__(msg, code=code or "STREAM_OPEN_FAILED")
        self.source = source


class StreamTransientError(StreamOpenError):
    """The source is temporarily unavailable; retrying may succeed."""

    def __init__(self, source: str, message: str | None = None) -> None:
        super().__init__(source, message, code="STREAM_TRANSIENT")


class StreamFatalError(StreamOpenError):
    """The source is fundamentally unplayable; retrying is pointless."""

    fatal = True

    def __init__(self, source: str, message: str | None = None) -> None:
        super().__init__(source, message, code="STREAM_FATAL")


class SpawnFailureError(StreamOpenError):
    """The external stream process could not be started at all."""

    def __init__(self, source: str, message: str | None = None) -> None:
        super().__init__(source, message, code="SPAWN_FAILED")


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state
