"""Base class for content source clients."""

from __future__ import annotations

from abc import ABC, abstractmethod

from socialpilot.content.filters import RelevanceFilter
from socialpilot.content.models import ContentItem, ContentSource


class ContentSourceClient(ABC):
    """Base class for source-specific fetchers.

    Each source implements ``fetch_raw()`` and ``is_configured``. The
    fetcher skips unconfigured sources. ``fetch()`` drops items without
    text and applies the relevance filter before returning.
    """

    def __init__(self, *, relevance_filter: RelevanceFilter | None = None) -> None:
        self._filter = relevance_filter

    @property
    @abstractmethod
    def source(self) -> ContentSource:
        """The content source this client handles."""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether this source has the credentials it needs."""

    @abstractmethod
    def fetch_raw(self, topic: str) -> list[ContentItem]:
        """Query the external source for one topic (no filtering)."""

    def fetch(self, topic: str) -> list[ContentItem]:
        """Fetch, drop empty items, and filter for relevance."""
        items = [item for item in self.fetch_raw(topic) if item.has_text]
        if self._filter is not None:
            items = self._filter.apply(items)
        return items
