"""News API source (newsapi.org ``/v2/everything``)."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from socialpilot import http
from socialpilot.config import NewsSectionConfig
from socialpilot.content.filters import RelevanceFilter
from socialpilot.content.models import ContentItem, ContentSource
from socialpilot.content.sources.base import ContentSourceClient

logger = logging.getLogger(__name__)

NEWS_API_URL = "https://newsapi.org/v2/everything"


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp as returned by the source APIs."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class NewsSource(ContentSourceClient):
    """Recent articles for a topic, newest first."""

    def __init__(
        self,
        config: NewsSectionConfig,
        *,
        relevance_filter: RelevanceFilter | None = None,
    ) -> None:
        super().__init__(relevance_filter=relevance_filter)
        self._config = config

    @property
    def source(self) -> ContentSource:
        return ContentSource.NEWS

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    def fetch_raw(self, topic: str) -> list[ContentItem]:
        since = datetime.now(tz=UTC) - timedelta(days=self._config.max_age_days)
        data = http.get_json(
            NEWS_API_URL,
            params={
                "q": topic,
                "from": since.date().isoformat(),
                "sortBy": "publishedAt",
                "language": "en",
                "pageSize": self._config.page_size,
                "apiKey": self._config.api_key,
            },
        )

        items: list[ContentItem] = []
        for article in data.get("articles", []) or []:
            items.append(
                ContentItem(
                    source=ContentSource.NEWS,
                    topic=topic,
                    url=article.get("url") or "",
                    title=article.get("title") or "",
                    body=article.get("description") or article.get("content") or "",
                    published_at=parse_timestamp(article.get("publishedAt")),
                )
            )
        logger.debug("News API returned %d articles for %r", len(items), topic)
        return items
