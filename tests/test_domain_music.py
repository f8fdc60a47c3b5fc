"""Tests for tracks, volume, playback states, the queue and the pool."""

import pydantic
import pytest

from guild_jukebox.domain.music.entities import Track
from guild_jukebox.domain.music.queue import TrackPool, TrackQueue
from guild_jukebox.domain.music.value_objects import PlaybackState, Volume
from guild_jukebox.domain.shared.exceptions import ValidationError

from .conftest import remote


class TestTrack:
    def test_remote_track_locator_is_source(self):
        track = remote("abc")
        assert track.is_remote
        assert not track.is_local
        assert track.locator == "https://www.youtube.com/watch?v=abc"

    def test_local_track_locator_is_path(self, local_track):
        assert local_track.is_local
        assert local_track.locator.endswith("clip.mp3")

    def test_rejects_both_locators(self):
        with pytest.raises(pydantic.ValidationError):
            Track(title="x", local_path="/tmp/a.mp3", source="https://example.com")

    def test_rejects_no_locator(self):
        with pytest.raises(pydantic.ValidationError):
            Track(title="x")

    def test_rejects_empty_title(self):
        with pytest.raises(pydantic.ValidationError):
            Track.from_source("", "https://example.com")

    def test_validate_for_enqueue_missing_local_file(self, tmp_path):
        track = Track.from_local("gone", tmp_path / "missing.mp3")
        with pytest.raises(ValidationError) as exc_info:
            track.validate_for_enqueue()
        assert exc_info.value.field == "local_path"

    def test_validate_for_enqueue_accepts_existing_file(self, local_track):
        local_track.validate_for_enqueue()

    def test_fresh_copy_resets_attempts(self):
        track = remote("abc")
        track.attempts = 2
        copy = track.fresh_copy()
        assert copy.attempts == 0
        assert copy is not track
        assert track.attempts == 2

    def test_with_requester(self):
        track = remote("abc").with_requester(42, "alice")
        assert track.requested_by_id == 42
        assert track.requested_by_name == "alice"


class TestVolume:
    @pytest.mark.parametrize(
        ("percent", "gain"),
        [(0, 0.0), (50, 0.5), (100, 1.0), (-10, 0.0), (250, 1.0), (99.9, 1.0), (33.6, 0.34)],
    )
    def test_from_percent_clamps(self, percent, gain):
        assert Volume.from_percent(percent).gain == gain

    def test_percent_round_trip(self):
        assert Volume(0.4).percent == 40
        assert str(Volume(0.4)) == "40%"

    @pytest.mark.parametrize("percent", [float("nan"), float("inf"), float("-inf")])
    def test_from_percent_rejects_non_finite(self, percent):
        with pytest.raises(ValidationError) as exc_info:
            Volume.from_percent(percent)

        assert exc_info.value.field == "volume"

    def test_rejects_out_of_range_gain(self):
        with pytest.raises(ValueError):
            Volume(1.5)


class TestPlaybackState:
    def test_valid_transitions(self):
        assert PlaybackState.IDLE.can_transition_to(PlaybackState.RESOLVING)
        assert PlaybackState.RESOLVING.can_transition_to(PlaybackState.PLAYING)
        assert PlaybackState.RESOLVING.can_transition_to(PlaybackState.IDLE)
        assert PlaybackState.PLAYING.can_transition_to(PlaybackState.PAUSED)
        assert PlaybackState.PAUSED.can_transition_to(PlaybackState.PLAYING)
        assert PlaybackState.PAUSED.can_transition_to(PlaybackState.IDLE)

    def test_invalid_transitions(self):
        assert not PlaybackState.IDLE.can_transition_to(PlaybackState.PLAYING)
        assert not PlaybackState.RESOLVING.can_transition_to(PlaybackState.PAUSED)
        assert not PlaybackState.PLAYING.can_transition_to(PlaybackState.RESOLVING)

    def test_is_active(self):
        assert PlaybackState.PLAYING.is_active
        assert PlaybackState.PAUSED.is_active
        assert not PlaybackState.RESOLVING.is_active
        assert not PlaybackState.IDLE.is_active


class TestTrackQueue:
    def test_fifo_order(self):
        queue = TrackQueue()
        for name in "abc":
            queue.append(remote(name))
        assert [queue.pop_front().title for _ in range(3)] == ["a", "b", "c"]
        assert queue.pop_front() is None

    def test_append_returns_position(self):
        queue = TrackQueue()
        assert queue.append(remote("a")) == 0
        assert queue.append(remote("b")) == 1

    def test_prepend_goes_first(self):
        queue = TrackQueue([remote("a"), remote("b")])
        queue.prepend(remote("forced"))
        assert [t.title for t in queue] == ["forced", "a", "b"]
        assert queue.pop_front().title == "forced"

    def test_clear_returns_count(self):
        queue = TrackQueue([remote("a"), remote("b")])
        assert queue.clear() == 2
        assert not queue
        assert len(queue) == 0


class TestTrackPool:
    def test_take_rotates_head_to_tail(self):
        pool = TrackPool([remote(n) for n in "abcd"])
        taken = pool.take(2)
        assert [t.title for t in taken] == ["a", "b"]
        assert [t.title for t in pool] == ["c", "d", "a", "b"]

    def test_take_returns_fresh_copies(self):
        member = remote("a")
        member.attempts = 2
        pool = TrackPool([member])
        (taken,) = pool.take(1)
        assert taken is not member
        assert taken.attempts == 0

    def test_take_from_empty_pool(self):
        assert TrackPool().take(3) == []

    @pytest.mark.parametrize(("size", "batch"), [(5, 2), (6, 3), (4, 4), (7, 1)])
    def test_rotation_is_a_cycle(self, size, batch):
        pool = TrackPool([remote(f"t{i}") for i in range(size)])
        sequence: list[str] = []
        while len(sequence) < size * 3:
            sequence.extend(t.title for t in pool.take(batch))

        for index, title in enumerate(sequence):
            later = sequence[index + 1 :]
            if title in later:
                assert later.index(title) + 1 == size
