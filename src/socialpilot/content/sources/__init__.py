"""External content source clients."""

from socialpilot.content.sources.base import ContentSourceClient
from socialpilot.content.sources.news import NewsSource
from socialpilot.content.sources.reddit import RedditSource
from socialpilot.content.sources.youtube import YouTubeSource

__all__ = ["ContentSourceClient", "NewsSource", "RedditSource", "YouTubeSource"]
