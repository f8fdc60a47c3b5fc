"""AudioResolver implementation using yt-dlp for URL resolution and search."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Final, cast

from yt_dlp import YoutubeDL

from guild_jukebox.application.interfaces.audio_resolver import AudioResolver
from guild_jukebox.config.settings import AudioSettings
from guild_jukebox.domain.music.entities import Track
from guild_jukebox.domain.shared.messages import LogTemplates

from .models import YtDlpEntry, YtDlpOpts

logger = logging.getLogger(__name__)

URL_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"https?://"),
    re.compile(r"www\."),
]


class YtDlpResolver(AudioResolver):
    """Finds candidates through yt-dlp's metadata extraction.

    Nothing is downloaded here; each candidate's watch-page URL becomes the
    track source that the stream provider later hands back to yt-dlp.
    """

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._base_opts = YtDlpOpts(format=self._settings.ytdlp_format)

    def _get_opts(self, **overrides: Any) -> YtDlpOpts:
        if overrides:
            return self._base_opts.model_copy(update=overrides)
        return self._base_opts

    def _get_flat_opts(self) -> YtDlpOpts:
        return self._get_opts(noplaylist=False, extract_flat="in_playlist", ignoreerrors=True)

    def _extract(self, target: str, opts: YtDlpOpts) -> dict[str, Any] | None:
        with YoutubeDL(params=cast(Any, opts.model_dump())) as ydl:
            data = ydl.extract_info(target, download=False)
        return dict(data) if isinstance(data, dict) else None

    @staticmethod
    def _entries(data: dict[str, Any] | None) -> list[YtDlpEntry]:
        if data is None:
            return []
        entries = data.get("entries")
        if entries is None:
            return [YtDlpEntry.model_validate(data)]
        return [YtDlpEntry.model_validate(dict(e)) for e in entries if isinstance(e, dict)]

    @staticmethod
    def _to_tracks(entries: list[YtDlpEntry]) -> list[Track]:
        tracks: list[Track] = []
        for entry in entries:
            source = entry.page_url
            if source is None or entry.is_live:
                logger.debug(LogTemplates.YTDLP_SKIPPED_ENTRY, entry.title)
                continue
            tracks.append(Track.from_source(entry.title, source))
        return tracks

    def _search_sync(self, query: str, limit: int) -> list[Track]:
        try:
            data = self._extract(f"ytsearch{limit}:{query}", self._get_flat_opts())
            return self._to_tracks(self._entries(data))[:limit]
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_SEARCH, query)
            return []

    def _extract_url_sync(self, url: str) -> list[Track]:
        try:
            return self._to_tracks(self._entries(self._extract(url, self._get_opts())))
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, url)
            return []

    def _extract_backlog_sync(self, seed: str) -> list[Track]:
        try:
            return self._to_tracks(self._entries(self._extract(seed, self._get_flat_opts())))
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_BACKLOG, seed)
            return []

    async def resolve(self, query: str, limit: int = 5) -> list[Track]:
        query = query.strip()
        if not query:
            return []

        if self.is_url(query):
            tracks = await asyncio.to_thread(self._extract_url_sync, query)
        else:
            tracks = await asyncio.to_thread(self._search_sync, query, limit)

        if not tracks:
            logger.info(LogTemplates.RESOLUTION_EMPTY, query)
        return tracks

    async def fetch_backlog(self, seed: str) -> list[Track]:
        return await asyncio.to_thread(self._extract_backlog_sync, seed)

    def is_url(self, query: str) -> bool:
        return any(pattern.search(query) for pattern in URL_PATTERNS)
