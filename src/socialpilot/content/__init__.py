"""Content intake: external sources, relevance filtering, concurrent fetch."""

from socialpilot.content.fetcher import ContentFetcher, build_filter, build_sources
from socialpilot.content.filters import KeywordFilter, LLMRelevanceFilter, RelevanceFilter
from socialpilot.content.models import ContentItem, ContentSource

__all__ = [
    "ContentFetcher",
    "ContentItem",
    "ContentSource",
    "KeywordFilter",
    "LLMRelevanceFilter",
    "RelevanceFilter",
    "build_filter",
    "build_sources",
]
