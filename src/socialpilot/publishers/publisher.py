"""Per-platform publishing of stored posts."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime

from socialpilot import http
from socialpilot.config import SocialPilotConfig
from socialpilot.errors import (
    ConfigurationError,
    PublishError,
    SocialPilotError,
    ThreadInterrupted,
)
from socialpilot.publishers.linkedin import LinkedInClient, share_url
from socialpilot.publishers.twitter import TwitterClient, tweet_url
from socialpilot.store.models import (
    InvalidTransition,
    Platform,
    Post,
    PostStatus,
    PublishOutcome,
    utcnow,
)
from socialpilot.store.store import PostStore, as_utc

logger = logging.getLogger(__name__)


@dataclass
class PublishResult:
    """The outcome or the error for one platform.

    A thread that stopped partway carries both: the outcome for the live
    tweets and the error that ended it.
    """

    platform: Platform
    outcome: PublishOutcome | None = None
    error: SocialPilotError | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is not None

    def to_dict(self) -> dict[str, object]:
        if self.outcome is not None:
            data: dict[str, object] = {
                "success": True,
                "postId": self.outcome.post_id,
                "url": self.outcome.url,
                "hasImage": self.outcome.has_image,
            }
            if self.error is not None:
                data["error"] = str(self.error)
            return data
        return {"success": False, "error": str(self.error)}


class Publisher:
    """Pushes stored posts to Twitter and LinkedIn.

    Each platform is attempted independently and reports its own result.
    There is no automatic retry.
    """

    def __init__(
        self,
        store: PostStore,
        twitter: TwitterClient,
        linkedin: LinkedInClient,
        *,
        thread_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.store = store
        self.twitter = twitter
        self.linkedin = linkedin
        self._thread_delay = thread_delay
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: SocialPilotConfig, store: PostStore) -> Publisher:
        return cls(
            store,
            TwitterClient(config.twitter),
            LinkedInClient(config.linkedin),
            thread_delay=config.twitter.thread_delay_seconds,
        )

    def is_configured(self, platform: Platform) -> bool:
        client = self.twitter if platform == Platform.TWITTER else self.linkedin
        return client.is_configured

    def publish(
        self,
        post: Post,
        platforms: Iterable[Platform | str],
        overrides: dict[Platform, str | list[str]] | None = None,
        *,
        now: datetime | None = None,
    ) -> dict[Platform, PublishResult]:
        """Publish ``post`` to each requested platform.

        ``overrides`` replaces the stored text for a platform for this call.
        The post becomes ``posted`` once any platform succeeds.

        Raises:
            InvalidTransition: The post is scheduled for a later time.
        """
        now = as_utc(now) if now else utcnow()
        if post.scheduled_at is not None and now < post.scheduled_at:
            raise InvalidTransition(
                post.id,
                post.status,
                PostStatus.POSTED,
                f"scheduled for {post.scheduled_at.isoformat()}",
            )

        overrides = {Platform(k): v for k, v in (overrides or {}).items()}
        results: dict[Platform, PublishResult] = {}
        for platform in dict.fromkeys(Platform(p) for p in platforms):
            results[platform] = self._publish_one(post, platform, overrides.get(platform), now)

        if any(result.ok for result in results.values()) and post.status != PostStatus.POSTED:
            self.store.update_status(post.id, PostStatus.POSTED, at=now)
        return results

    def _publish_one(
        self,
        post: Post,
        platform: Platform,
        override: str | list[str] | None,
        now: datetime,
    ) -> PublishResult:
        if self.store.has_outcome(post.id, platform):
            error: SocialPilotError = PublishError(platform, "post was already published here")
            return PublishResult(platform, error=error)
        if not self.is_configured(platform):
            error = ConfigurationError(platform, f"{platform} credentials are not configured")
            logger.warning("%s", error)
            return PublishResult(platform, error=error)

        text = override or post.text_for(platform)
        if not text:
            return PublishResult(platform, error=PublishError(platform, "post has no text for it"))

        interrupted: ThreadInterrupted | None = None
        try:
            if platform == Platform.TWITTER:
                outcome = self._publish_twitter(text)
            else:
                outcome = self._publish_linkedin(post, text)
        except ThreadInterrupted as exc:
            # Posted segments are live and count as published
            logger.error("Post %s: %s", post.id, exc)
            interrupted = exc
            outcome = PublishOutcome(
                platform=Platform.TWITTER, post_id=exc.tweet_ids[0], url=tweet_url(exc.tweet_ids[0])
            )
        except http.HTTPError as exc:
            error = PublishError(platform, str(exc))
            logger.error("%s", error)
            return PublishResult(platform, error=error)

        outcome = outcome.model_copy(update={"store_post_id": post.id, "occurred_at": now})
        self.store.record_outcome(outcome)
        logger.info("Published post %s to %s: %s", post.id, platform, outcome.url)
        return PublishResult(platform, outcome=outcome, error=interrupted)

    def _publish_twitter(self, text: str | list[str]) -> PublishOutcome:
        if isinstance(text, str):
            tweet_id = self.twitter.create_tweet(text)
            return PublishOutcome(platform=Platform.TWITTER, post_id=tweet_id, url=tweet_url(tweet_id))

        tweet_ids: list[str] = []
        previous: str | None = None
        for index, segment in enumerate(text):
            if index:
                self._sleep(self._thread_delay)
            try:
                previous = self.twitter.create_tweet(segment, reply_to=previous)
            except http.HTTPError as exc:
                if not tweet_ids:
                    raise
                raise ThreadInterrupted(tweet_ids, str(exc)) from exc
            tweet_ids.append(previous)
        logger.info("Posted thread of %d tweets", len(tweet_ids))
        return PublishOutcome(
            platform=Platform.TWITTER, post_id=tweet_ids[0], url=tweet_url(tweet_ids[0])
        )

    def _publish_linkedin(self, post: Post, text: str | list[str]) -> PublishOutcome:
        if isinstance(text, list):
            text = "\n".join(text)
        post_id, has_image = self.linkedin.share(text, post.image)
        return PublishOutcome(
            platform=Platform.LINKEDIN,
            post_id=post_id,
            url=share_url(post_id),
            has_image=has_image,
        )
