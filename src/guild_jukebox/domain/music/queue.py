"""Ordered track containers: the play queue and the themed-loop pool."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator

from guild_jukebox.domain.music.entities import Track


class TrackQueue:
    """FIFO of tracks waiting to play in one session.

    Anyone may append or prepend; only the playback loop pops.
    """

    def __init__(self, tracks: Iterable[Track] = ()) -> None:
        self._tracks: deque[Track] = deque(tracks)

    def __len__(self) -> int:
        return len(self._tracks)

    def __iter__(self) -> Iterator[Track]:
        return iter(self._tracks)

    def __bool__(self) -> bool:
        return bool(self._tracks)

    def append(self, track: Track) -> int:
        """Add *track* at the tail and return its zero-based position."""
        self._tracks.append(track)
        return len(self._tracks) - 1

    def prepend(self, track: Track) -> None:
        """Put *track* ahead of everything else."""
        self._tracks.appendleft(track)

    def pop_front(self) -> Track | None:
        if not self._tracks:
            return None
        return self._tracks.popleft()

    def clear(self) -> int:
        """Remove every queued track and return how many were dropped."""
        count = len(self._tracks)
        self._tracks.clear()
        return count


class TrackPool:
    """Rotating backlog of candidates for themed playback.

    Taking from the pool moves each member from the head to the tail, so the
    backlog cycles indefinitely and untouched members keep their relative order.
    """

    def __init__(self, tracks: Iterable[Track] = ()) -> None:
        self._tracks: deque[Track] = deque(tracks)

    def __len__(self) -> int:
        return len(self._tracks)

    def __iter__(self) -> Iterator[Track]:
        return iter(self._tracks)

    def __bool__(self) -> bool:
        return bool(self._tracks)

    def take(self, count: int) -> list[Track]:
        """Rotate *count* members from head to tail, returning fresh copies of each."""
        taken: list[Track] = []
        if not self._tracks:
            return taken

        for _ in range(count):
            member = self._tracks.popleft()
            self._tracks.append(member)
            taken.append(member.fresh_copy())
        return taken

    def clear(self) -> None:
        self._tracks.clear()
