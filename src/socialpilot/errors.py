"""Error taxonomy shared across the pipeline.

Fetch, filter and image errors degrade gracefully (callers log and move
on). Generation and publish errors represent a failed unit of work and
are surfaced to whoever asked for it.
"""

from __future__ import annotations


class SocialPilotError(Exception):
    """Base error for socialpilot."""


class FetchError(SocialPilotError):
    """A content source failed for one topic."""


class FilterError(SocialPilotError):
    """Relevance classification failed; the item is kept."""


class GenerationError(SocialPilotError):
    """The text capability was unreachable or returned an unusable payload."""


class ImageError(SocialPilotError):
    """No image search capability produced a result."""


class PublishError(SocialPilotError):
    """A platform rejected a publish request."""

    def __init__(self, platform: str, message: str) -> None:
        super().__init__(f"Failed to post to {platform}: {message}")
        self.platform = platform
        self.upstream_message = message


class ConfigurationError(SocialPilotError):
    """A required credential or setting is missing."""

    def __init__(self, component: str, message: str) -> None:
        super().__init__(message)
        self.component = component


class ThreadInterrupted(PublishError):
    """A thread stopped partway. The tweets in ``tweet_ids`` are live."""

    def __init__(self, tweet_ids: list[str], message: str) -> None:
        super().__init__("twitter", f"thread stopped after {len(tweet_ids)} tweet(s): {message}")
        self.tweet_ids = list(tweet_ids)
