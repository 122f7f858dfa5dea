"""YouTube Data API source with transcript extraction."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from youtube_transcript_api import YouTubeTranscriptApi

from socialpilot import http
from socialpilot.config import YouTubeSectionConfig
from socialpilot.content.filters import RelevanceFilter
from socialpilot.content.models import ContentItem, ContentSource
from socialpilot.content.sources.base import ContentSourceClient
from socialpilot.content.sources.news import parse_timestamp

logger = logging.getLogger(__name__)

YOUTUBE_SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
TRANSCRIPT_CHAR_LIMIT = 2000


class YouTubeSource(ContentSourceClient):
    """Recent videos for a topic; body is the transcript when available."""

    def __init__(
        self,
        config: YouTubeSectionConfig,
        *,
        relevance_filter: RelevanceFilter | None = None,
        transcript_api: YouTubeTranscriptApi | None = None,
    ) -> None:
        super().__init__(relevance_filter=relevance_filter)
        self._config = config
        self._transcripts = transcript_api

    @property
    def source(self) -> ContentSource:
        return ContentSource.VIDEO

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    def fetch_raw(self, topic: str) -> list[ContentItem]:
        published_after = datetime.now(tz=UTC) - timedelta(days=self._config.max_age_days)
        data = http.get_json(
            YOUTUBE_SEARCH_URL,
            params={
                "part": "snippet",
                "q": topic,
                "type": "video",
                "order": "date",
                "publishedAfter": published_after.strftime("%Y-%m-%dT%H:%M:%SZ"),
                "maxResults": self._config.max_results,
                "key": self._config.api_key,
            },
        )

        items: list[ContentItem] = []
        for entry in data.get("items", []) or []:
            video_id = (entry.get("id") or {}).get("videoId")
            if not video_id:
                continue
            snippet = entry.get("snippet") or {}
            body = ""
            if self._config.fetch_transcripts:
                body = self.transcript_text(video_id)
            if not body:
                body = snippet.get("description") or ""
            items.append(
                ContentItem(
                    source=ContentSource.VIDEO,
                    topic=topic,
                    url=f"https://www.youtube.com/watch?v={video_id}",
                    title=snippet.get("title") or "",
                    body=body,
                    published_at=parse_timestamp(snippet.get("publishedAt")),
                )
            )
        return items

    def transcript_text(self, video_id: str) -> str:
        """Return the joined transcript, or "" if none is available."""
        if self._transcripts is None:
            self._transcripts = YouTubeTranscriptApi()
        try:
            fetched = self._transcripts.fetch(video_id)
        except Exception:
            logger.debug("No transcript for video %s", video_id, exc_info=True)
            return ""
        text = " ".join(snippet.text for snippet in fetched)
        return text[:TRANSCRIPT_CHAR_LIMIT]
