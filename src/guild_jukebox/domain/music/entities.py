"""Core domain entities for the music bounded context."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, model_validator

from guild_jukebox.domain.shared.exceptions import ValidationError
from guild_jukebox.domain.shared.messages import ErrorMessages
from guild_jukebox.domain.shared.types import (
    DiscordSnowflake,
    NonEmptyStr,
    NonNegativeInt,
    TrackTitleStr,
)


class Track(BaseModel):
    """One playable unit: either a local audio file or a resolver-supplied source.

    ``attempts`` counts failed stream-open attempts for this track instance and
    is the only field mutated after construction.
    """

    model_config = ConfigDict(strict=True, validate_assignment=True)

    title: TrackTitleStr
    local_path: NonEmptyStr | None = None
    source: NonEmptyStr | None = None
    attempts: NonNegativeInt = 0

    # Request metadata (set when queued from a command)
    requested_by_id: DiscordSnowflake | None = None
    requested_by_name: NonEmptyStr | None = None

    @model_validator(mode="after")
    def _exactly_one_locator(self) -> Track:
        if (self.local_path is None) == (self.source is None):
            raise ValueError(ErrorMessages.TRACK_NEEDS_ONE_LOCATOR)
        return self

    @classmethod
    def from_local(cls, title: str, path: str | Path) -> Track:
        return cls(title=title, local_path=str(path))

    @classmethod
    def from_source(cls, title: str, source: str) -> Track:
        return cls(title=title, source=source)

    @property
    def is_local(self) -> bool:
        return self.local_path is not None

    @property
    def is_remote(self) -> bool:
        return self.source is not None

    @property
    def locator(self) -> str:
        """The local path or remote source, whichever this track carries."""
        return self.local_path if self.local_path is not None else str(self.source)

    def fresh_copy(self) -> Track:
        """Return a distinct track value with the attempt counter reset."""
        return self.model_copy(update={"attempts": 0})

    def with_requester(self, user_id: DiscordSnowflake, user_name: NonEmptyStr) -> Track:
        """Return a copy of this track with requester metadata populated."""
        return self.model_copy(
            update={"requested_by_id": user_id, "requested_by_name": user_name}
        )

    def validate_for_enqueue(self) -> None:
        """Reject tracks that cannot possibly be played.

        Raises:
            ValidationError: If the track breaks the locator invariant or its
                local file does not exist.
        """
        if (self.local_path is None) == (self.source is None):
            raise ValidationError(ErrorMessages.TRACK_NEEDS_ONE_LOCATOR, field="source")
        if self.local_path is not None and not Path(self.local_path).is_file():
            raise ValidationError(
                ErrorMessages.LOCAL_FILE_MISSING.format(path=self.local_path),
                field="local_path",
            )
