"""Pure data models for content intake.

No I/O here. Sources, filters and the fetcher import from this module.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel


class ContentSource(StrEnum):
    """Kinds of external source material."""

    NEWS = "news"
    VIDEO = "video"
    FORUM = "forum"


class ContentItem(BaseModel):
    """One piece of source material, normalized across sources.

    Transient: produced per fetch cycle and only ever persisted as the
    ``source_content`` of a generated post.
    """

    source: ContentSource
    topic: str
    url: str = ""
    title: str = ""
    body: str = ""
    published_at: datetime | None = None
    score: int | None = None

    @property
    def has_text(self) -> bool:
        """Whether both title and body survived extraction."""
        return bool(self.title.strip() and self.body.strip())

    def combined_text(self) -> str:
        """Lowercased title + body, used by relevance filters."""
        return f"{self.title} {self.body}".lower()
