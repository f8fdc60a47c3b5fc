"""StreamProvider that pipes yt-dlp's stdout, or opens local files directly."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import subprocess
import threading
from collections import deque
from typing import IO, Final

from guild_jukebox.application.interfaces.stream_provider import AudioStream, StreamProvider
from guild_jukebox.config.settings import AudioSettings
from guild_jukebox.domain.music.entities import Track
from guild_jukebox.domain.shared.exceptions import (
    SpawnFailureError,
    StreamFatalError,
    StreamTransientError,
)
from guild_jukebox.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

STDERR_TAIL_LINES: Final[int] = 20
PROCESS_EXIT_WAIT: Final[float] = 2.0

# yt-dlp error messages that mean the source will never play.
FATAL_STDERR_MARKERS: Final[tuple[str, ...]] = (
    "unsupported url",
    "video unavailable",
    "private video",
    "this video is not available",
    "this video has been removed",
    "sign in to confirm your age",
    "members-only",
    "is not a valid url",
    "http error 404",
)


def classify_stderr(stderr: str) -> bool:
    """Return True when yt-dlp's stderr says the source is permanently unplayable."""
    lowered = stderr.lower()
    return any(marker in lowered for marker in FATAL_STDERR_MARKERS)


class FileAudioStream(AudioStream):
    """A local audio file opened for binary reading."""

    def __init__(self, handle: IO[bytes]) -> None:
        self._handle = handle

    def read(self, size: int = -1) -> bytes:
        return self._handle.read(size)

    def close(self) -> None:
        self._handle.close()

    @property
    def closed(self) -> bool:
        return self._handle.closed


class ProcessAudioStream(AudioStream):
    """yt-dlp's stdout, with the bytes already consumed by the probe replayed first.

    Closing the stream kills the process if it is still running.
    """

    def __init__(self, process: subprocess.Popen[bytes], prefix: bytes = b"") -> None:
        self._process = process
        self._prefix = prefix
        self._closed = False
        self._lock = threading.Lock()

    @property
    def pid(self) -> int:
        return self._process.pid

    def read(self, size: int = -1) -> bytes:
        stdout = self._process.stdout
        if self._closed or stdout is None:
            return b""

        if self._prefix:
            if size < 0:
                data, self._prefix = self._prefix + stdout.read(), b""
                return data
            data, self._prefix = self._prefix[:size], self._prefix[size:]
            return data

        return stdout.read(size)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        _terminate(self._process)

    @property
    def closed(self) -> bool:
        return self._closed


class YtDlpStreamProvider(StreamProvider):
    """Opens audio for a track.

    Remote tracks spawn ``yt-dlp -o -`` and wait for the first bytes of audio
    before handing the pipe over, so a source that fails immediately is
    reported as a classified error instead of a silent, empty stream.
    """

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()

    def build_command(self, source: str) -> list[str]:
        settings = self._settings
        return [
            settings.ytdlp_executable,
            "-f",
            settings.ytdlp_format,
            "--no-playlist",
            "--buffer-size",
            settings.ytdlp_buffer_size,
            "-o",
            "-",
            "-q",
            "--no-warnings",
            source,
        ]

    async def open_stream(self, track: Track) -> AudioStream:
        if track.local_path is not None:
            return self._open_local(track.local_path)
        return await self._open_remote(str(track.source))

    def _open_local(self, path: str) -> AudioStream:
        try:
            return FileAudioStream(open(path, "rb"))
        except (FileNotFoundError, IsADirectoryError, PermissionError) as e:
            raise StreamFatalError(
                path, ErrorMessages.LOCAL_FILE_UNREADABLE.format(path=path, error=e)
            ) from e
        except OSError as e:
            raise StreamTransientError(
                path, ErrorMessages.LOCAL_FILE_UNREADABLE.format(path=path, error=e)
            ) from e

    async def _open_remote(self, source: str) -> AudioStream:
        command = self.build_command(source)
        try:
            process = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            raise SpawnFailureError(
                source,
                ErrorMessages.STREAM_SPAWN_FAILED.format(executable=command[0], error=e),
            ) from e

        logger.debug(LogTemplates.STREAM_SPAWNED, process.pid, source)
        stderr_tail, stderr_reader = _drain_stderr(process)

        try:
            first_chunk = await asyncio.wait_for(
                asyncio.to_thread(self._probe, process),
                timeout=self._settings.open_timeout_seconds,
            )
        except TimeoutError as e:
            await _terminate_off_loop(process)
            raise StreamTransientError(
                source,
                ErrorMessages.STREAM_OPEN_TIMEOUT.format(
                    timeout=self._settings.open_timeout_seconds, source=source
                ),
            ) from e
        except BaseException:
            # Cancellation included: never leave the process behind.
            await _terminate_off_loop(process)
            raise

        if first_chunk:
            return ProcessAudioStream(process, first_chunk)

        returncode = await asyncio.to_thread(_wait_quietly, process)
        if stderr_reader is not None:
            await asyncio.to_thread(stderr_reader.join, PROCESS_EXIT_WAIT)
        stderr = "\n".join(stderr_tail)
        message = ErrorMessages.STREAM_PROCESS_EXITED.format(code=returncode)
        if stderr:
            message = f"{message}: {stderr.strip()}"

        if classify_stderr(stderr):
            raise StreamFatalError(source, message)
        raise StreamTransientError(source, message)

    def _probe(self, process: subprocess.Popen[bytes]) -> bytes:
        stdout = process.stdout
        if stdout is None:
            return b""
        return stdout.read1(self._settings.probe_bytes)


def _drain_stderr(
    process: subprocess.Popen[bytes],
) -> tuple[deque[str], threading.Thread | None]:
    """Keep reading stderr in the background so the pipe never fills up."""
    tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)
    stderr = process.stderr
    if stderr is None:
        return tail, None

    def reader() -> None:
        try:
            for raw in iter(stderr.readline, b""):
                line = raw.decode("utf-8", errors="replace").rstrip()
                if line:
                    tail.append(line)
        except (OSError, ValueError):
            return

    thread = threading.Thread(target=reader, name=f"yt-dlp-stderr-{process.pid}", daemon=True)
    thread.start()
    return tail, thread


def _wait_quietly(process: subprocess.Popen[bytes]) -> int | None:
    try:
        return process.wait(timeout=PROCESS_EXIT_WAIT)
    except subprocess.TimeoutExpired:
        _terminate(process)
        return process.returncode


async def _terminate_off_loop(process: subprocess.Popen[bytes]) -> None:
    """Run :func:`_terminate` in a worker thread.

    The probe thread may still be blocked in ``read1`` holding the stdout lock,
    so closing the pipe from the event loop would stall every guild.
    """
    await asyncio.shield(asyncio.to_thread(_terminate, process))


def _kill_group(process: subprocess.Popen[bytes]) -> None:
    """Kill yt-dlp and any child it spawned that still holds the stdout pipe."""
    if os.name != "posix":
        if process.poll() is None:
            process.kill()
        return
    try:
        # start_new_session makes yt-dlp the leader of its own process group.
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        return


def _terminate(process: subprocess.Popen[bytes]) -> None:
    try:
        _kill_group(process)
        process.wait(timeout=PROCESS_EXIT_WAIT)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(LogTemplates.STREAM_PROCESS_CLEANUP_ERROR, e)
    finally:
        if process.stdout is not None:
            process.stdout.close()
