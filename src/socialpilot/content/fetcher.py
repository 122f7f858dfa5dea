"""Concurrent multi-source content fetcher."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from socialpilot.config import SocialPilotConfig
from socialpilot.content.filters import KeywordFilter, LLMRelevanceFilter, RelevanceFilter
from socialpilot.content.models import ContentItem
from socialpilot.content.sources.base import ContentSourceClient
from socialpilot.content.sources.news import NewsSource
from socialpilot.content.sources.reddit import RedditSource
from socialpilot.content.sources.youtube import YouTubeSource
from socialpilot.errors import FetchError

logger = logging.getLogger(__name__)


def build_filter(config: SocialPilotConfig) -> RelevanceFilter:
    """Pick the relevance filter the configuration asks for."""
    if config.filter.use_llm:
        provider = config.llm.classifier_provider or config.generation.default_provider
        return LLMRelevanceFilter(provider=provider, keys=config.llm)
    return KeywordFilter(extra_keywords=config.filter.extra_blocked_keywords)


def build_sources(config: SocialPilotConfig) -> list[ContentSourceClient]:
    """All known sources in their fixed result order: news, video, forum."""
    relevance = build_filter(config)
    return [
        NewsSource(config.news, relevance_filter=relevance),
        YouTubeSource(config.youtube, relevance_filter=relevance),
        RedditSource(config.reddit, relevance_filter=relevance),
    ]


class ContentFetcher:
    """Fans each topic out to every configured source.

    Sources for one topic run concurrently; a failing or unconfigured
    source contributes nothing and never aborts the fetch.
    """

    def __init__(self, sources: Sequence[ContentSourceClient]) -> None:
        self._sources = list(sources)
        self._warned: set[str] = set()

    @classmethod
    def from_config(cls, config: SocialPilotConfig) -> ContentFetcher:
        return cls(build_sources(config))

    @property
    def sources(self) -> list[ContentSourceClient]:
        return list(self._sources)

    async def fetch(self, topics: Sequence[str]) -> list[ContentItem]:
        results: list[ContentItem] = []
        for topic in topics:
            results.extend(await self.fetch_topic(topic))
        logger.info("Fetched %d items for %d topic(s)", len(results), len(topics))
        return results

    async def fetch_topic(self, topic: str) -> list[ContentItem]:
        active = [source for source in self._sources if self._usable(source)]
        if not active:
            return []

        batches = await asyncio.gather(
            *(asyncio.to_thread(source.fetch, topic) for source in active),
            return_exceptions=True,
        )

        items: list[ContentItem] = []
        for source, batch in zip(active, batches, strict=True):
            if isinstance(batch, BaseException):
                error = FetchError(f"{source.source} fetch failed for {topic!r}: {batch}")
                logger.warning("%s", error, exc_info=batch)
                continue
            items.extend(batch)
        return items

    def _usable(self, source: ContentSourceClient) -> bool:
        if source.is_configured:
            return True
        if source.source not in self._warned:
            self._warned.add(source.source)
            logger.warning("Content source %s is not configured, skipping", source.source)
        return False
