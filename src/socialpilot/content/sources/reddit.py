"""Reddit search source (application-only OAuth)."""

from __future__ import annotations

import base64
import logging
import time
from datetime import UTC, datetime

from socialpilot import http
from socialpilot.config import RedditSectionConfig
from socialpilot.content.filters import RelevanceFilter
from socialpilot.content.models import ContentItem, ContentSource
from socialpilot.content.sources.base import ContentSourceClient
from socialpilot.errors import FetchError

logger = logging.getLogger(__name__)

REDDIT_TOKEN_URL = "https://www.reddit.com/api/v1/access_token"
REDDIT_API_BASE = "https://oauth.reddit.com"

SUBREDDIT_MAP: dict[str, str] = {
    "AI": "MachineLearning+artificial+OpenAI",
    "Startups": "startups+Entrepreneur",
    "Product Design": "ProductManagement+UXDesign",
    "Marketing": "marketing+growth_hacking",
    "Technology": "technology+tech",
}


def subreddits_for(topic: str) -> str:
    """Map a topic to a multi-subreddit path segment."""
    return SUBREDDIT_MAP.get(topic, topic.lower().replace(" ", ""))


class RedditSource(ContentSourceClient):
    """Hot threads from topic subreddits over the last week."""

    def __init__(
        self,
        config: RedditSectionConfig,
        *,
        relevance_filter: RelevanceFilter | None = None,
    ) -> None:
        super().__init__(relevance_filter=relevance_filter)
        self._config = config
        self._token: str | None = None
        self._token_expires_at = 0.0

    @property
    def source(self) -> ContentSource:
        return ContentSource.FORUM

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    def _access_token(self) -> str:
        if self._token and time.time() < self._token_expires_at:
            return self._token

        credentials = f"{self._config.client_id}:{self._config.client_secret}"
        basic = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
        response = http.request(
            "POST",
            REDDIT_TOKEN_URL,
            data=b"grant_type=client_credentials",
            headers={
                "Authorization": f"Basic {basic}",
                "Content-Type": "application/x-www-form-urlencoded",
                "User-Agent": self._config.user_agent,
            },
        )
        payload = response.json()
        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise FetchError("Reddit did not return an access token")
        self._token = str(token)
        # Refresh a minute early
        self._token_expires_at = time.time() + int(payload.get("expires_in", 3600)) - 60
        return self._token

    def fetch_raw(self, topic: str) -> list[ContentItem]:
        data = http.get_json(
            f"{REDDIT_API_BASE}/r/{subreddits_for(topic)}/search",
            params={
                "q": topic,
                "sort": "hot",
                "t": "week",
                "limit": self._config.limit,
                "restrict_sr": "on",
            },
            headers={
                "Authorization": f"Bearer {self._access_token()}",
                "User-Agent": self._config.user_agent,
            },
        )

        items: list[ContentItem] = []
        for child in (data.get("data") or {}).get("children", []) or []:
            post = child.get("data") or {}
            title = post.get("title") or ""
            created = post.get("created_utc")
            items.append(
                ContentItem(
                    source=ContentSource.FORUM,
                    topic=topic,
                    url=f"https://reddit.com{post.get('permalink', '')}",
                    title=title,
                    body=post.get("selftext") or title,
                    score=post.get("score"),
                    published_at=(
                        datetime.fromtimestamp(float(created), tz=UTC) if created else None
                    ),
                )
            )
        return items
