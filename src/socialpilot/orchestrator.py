"""Post lifecycle orchestration: timed ticks and the manual paths.

Fetch, publish, quota and growth ticks run as independent asyncio tasks
that only talk to each other through the post store. Each tick logs its
own failures and the loop carries on.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timedelta

from socialpilot.config import SocialPilotConfig
from socialpilot.content.fetcher import ContentFetcher
from socialpilot.content.models import ContentItem
from socialpilot.errors import GenerationError
from socialpilot.generation.generator import PostGenerator
from socialpilot.generation.models import StyleConfig, Tone
from socialpilot.growth import GrowthAnalyzer
from socialpilot.images.models import ImageReference
from socialpilot.images.queries import keywords_from_content
from socialpilot.images.resolver import ImageResolver
from socialpilot.publishers.publisher import Publisher, PublishResult
from socialpilot.publishers.quota import QuotaStatus, quota_report
from socialpilot.store.models import Platform, Post, PostStatus
from socialpilot.store.store import PostStore

logger = logging.getLogger(__name__)


def local_now() -> datetime:
    return datetime.now().astimezone()


def next_run_at(time_str: str, now: datetime) -> datetime:
    """Next wall-clock occurrence of ``HH:MM`` strictly after ``now``."""
    hours, minutes = (int(part) for part in time_str.split(":"))
    candidate = now.replace(hour=hours, minute=minutes, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


class Orchestrator:
    """Sequences fetch → generate → image → store, and store → publish."""

    def __init__(
        self,
        config: SocialPilotConfig,
        fetcher: ContentFetcher,
        generator: PostGenerator,
        resolver: ImageResolver,
        store: PostStore,
        publisher: Publisher,
        *,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.generator = generator
        self.resolver = resolver
        self.store = store
        self.publisher = publisher
        self.growth = GrowthAnalyzer(store)
        self._clock = clock

    @classmethod
    def from_config(cls, config: SocialPilotConfig) -> Orchestrator:
        store = PostStore(config.store.path)
        return cls(
            config,
            ContentFetcher.from_config(config),
            PostGenerator(
                config.llm,
                default_provider=config.generation.default_provider,
                body_char_budget=config.generation.body_char_budget,
                timeout=config.generation.timeout,
            ),
            ImageResolver.from_config(config),
            store,
            Publisher.from_config(config, store),
        )

    @property
    def platforms(self) -> list[Platform]:
        return [Platform(name) for name in self.config.schedule.platforms]

    def default_style(self) -> StyleConfig:
        return StyleConfig(
            provider=self.config.generation.default_provider,
            tone=Tone(self.config.generation.default_tone),
        )

    # ── Manual paths ─────────────────────────────────────────────

    async def fetch_content(self, topics: Sequence[str] | None = None) -> list[ContentItem]:
        return await self.fetcher.fetch(list(topics or self.config.schedule.topics))

    async def generate_for(
        self,
        content: ContentItem,
        style: StyleConfig | None = None,
        *,
        status: PostStatus = PostStatus.PENDING,
        prefer_thread: bool = False,
    ) -> Post:
        """Generate posts for one item, attach an image, and store the result.

        Raises:
            GenerationError: Generation failed, including the fallback attempt.
        """
        style = style or self.default_style()
        generated = await asyncio.to_thread(self.generator.generate, content, style)
        image = await asyncio.to_thread(
            self.resolver.resolve, keywords_from_content(content), generated.longform_text
        )
        return self.store.insert(
            content,
            generated.platform_texts(prefer_thread=prefer_thread),
            tone=str(generated.tone),
            image=image,
            status=status,
        )

    async def approve_and_publish(
        self,
        post_id: int,
        platforms: Sequence[Platform | str] | None = None,
        overrides: dict[Platform, str | list[str]] | None = None,
    ) -> dict[Platform, PublishResult]:
        """Operator-approved publish, bypassing the pending gate and any schedule.

        Raises:
            KeyError: Unknown post id.
        """
        post = self.store.get(post_id)
        if post is None:
            raise KeyError(post_id)
        if post.scheduled_at is not None:
            self.store.update_schedule(post_id, None)
            post = post.model_copy(update={"scheduled_at": None})
        return await asyncio.to_thread(
            self.publisher.publish, post, list(platforms or self.platforms), overrides
        )

    async def regenerate_image(self, post_id: int) -> ImageReference | None:
        """Resolve a fresh image for a stored post and replace the old one.

        The stored image is kept when no new one is found.
        """
        post = self.store.get(post_id)
        if post is None:
            raise KeyError(post_id)
        post_text = post.text_for(Platform.LINKEDIN)
        if isinstance(post_text, list):
            post_text = " ".join(post_text)
        image = await asyncio.to_thread(
            self.resolver.resolve, keywords_from_content(post.source_content), post_text
        )
        if image is not None:
            self.store.update_image(post_id, image)
        return image

    def schedule_post(self, post_id: int, when: datetime | None) -> None:
        self.store.update_schedule(post_id, when)

    def quota(self, now: datetime | None = None) -> dict[Platform, QuotaStatus]:
        limits: dict[Platform, int | None] = {
            Platform.TWITTER: self.config.twitter.monthly_limit,
            Platform.LINKEDIN: None,
        }
        return quota_report(self.store, limits, now)

    # ── Ticks ────────────────────────────────────────────────────

    async def fetch_tick(self) -> list[Post]:
        """Fetch configured topics and store posts for the top items."""
        topics = self.config.schedule.topics
        items = await self.fetch_content(topics)
        top = items[: self.config.schedule.posts_per_fetch]
        status = PostStatus.PENDING if self.config.schedule.auto_post else PostStatus.DRAFT
        logger.info("Fetch tick: %d items, generating %d as %s", len(items), len(top), status)

        stored: list[Post] = []
        for item in top:
            try:
                stored.append(await self.generate_for(item, status=status))
            except GenerationError as exc:
                logger.error("Skipping %r: %s", item.title[:80], exc)
        return stored

    def select_for_publish(
        self, now: datetime, *, include_pending: bool = True
    ) -> dict[int, list[Platform]]:
        """Choose one post per platform: the earliest due scheduled post, else
        the oldest pending one. Returns post id → platforms to publish it to.
        """
        selection: dict[int, list[Platform]] = {}
        for platform in self.platforms:
            if not self.publisher.is_configured(platform):
                continue
            due = self.store.due_scheduled(platform, now)
            post = due[0] if due else None
            if post is None and include_pending:
                post = self.store.oldest_pending(platform)
            if post is not None:
                selection.setdefault(post.id, []).append(platform)
        return selection

    async def publish_tick(
        self, now: datetime | None = None, *, include_pending: bool = True
    ) -> dict[int, dict[Platform, PublishResult]]:
        """Publish the next post per platform when unattended posting is allowed."""
        if not self.config.auto_publish_enabled:
            logger.info("Auto-post disabled or approval required; posts wait for approval")
            return {}

        now = now or self._clock()
        selection = self.select_for_publish(now, include_pending=include_pending)
        if not selection:
            logger.debug("No posts ready to publish")
            return {}

        results: dict[int, dict[Platform, PublishResult]] = {}
        for post_id, platforms in selection.items():
            post = self.store.get(post_id)
            if post is None:
                continue
            results[post_id] = await asyncio.to_thread(
                self.publisher.publish, post, platforms, None, now=now
            )
            for platform, result in results[post_id].items():
                if not result.ok:
                    logger.error("Post %s to %s failed: %s", post_id, platform, result.error)
            if not any(result.ok for result in results[post_id].values()):
                self._withdraw(post)
        return results

    def _withdraw(self, post: Post) -> None:
        """Take a post that failed everywhere out of the automatic queue."""
        if post.status == PostStatus.POSTED:
            return
        self.store.update_schedule(post.id, None)
        self.store.update_status(post.id, PostStatus.DRAFT)
        logger.warning("Post %s failed on every platform; moved back to draft", post.id)

    async def scheduled_tick(self) -> dict[int, dict[Platform, PublishResult]]:
        """Short-interval check that only publishes due scheduled posts."""
        return await self.publish_tick(include_pending=False)

    def quota_tick(self, now: datetime | None = None) -> dict[Platform, QuotaStatus]:
        report = self.quota(now)
        for status in report.values():
            if status.unlimited:
                logger.info("%s quota: %d used (unlimited)", status.platform, status.used)
            else:
                logger.info(
                    "%s quota: %d/%d used, %d remaining (%d/day)",
                    status.platform,
                    status.used,
                    status.limit,
                    status.remaining,
                    status.daily_average,
                )
        twitter = report.get(Platform.TWITTER)
        threshold = self.config.schedule.quota_warning_threshold
        if twitter is not None and twitter.remaining is not None and twitter.remaining < threshold:
            logger.warning("Approaching Twitter monthly limit: %d remaining", twitter.remaining)
        return report

    def growth_tick(self) -> None:
        recommendations = self.growth.recommendations()
        for rec in recommendations:
            logger.info("Growth [%s/%s]: %s", rec.type, rec.priority, rec.message)

    # ── Scheduler loop ───────────────────────────────────────────

    async def _run_tick(self, name: str, tick: Callable[[], Awaitable[object] | object]) -> None:
        try:
            result = tick()
            if asyncio.iscoroutine(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("%s tick failed", name)

    async def _every(self, name: str, interval: float, tick: Callable[[], object]) -> None:
        while True:
            await asyncio.sleep(interval)
            await self._run_tick(name, tick)

    async def _daily_at(self, name: str, time_str: str, tick: Callable[[], object]) -> None:
        while True:
            now = self._clock()
            delay = (next_run_at(time_str, now) - now).total_seconds()
            await asyncio.sleep(delay)
            await self._run_tick(name, tick)

    def build_tasks(self) -> list[Awaitable[None]]:
        schedule = self.config.schedule
        tasks: list[Awaitable[None]] = [
            self._every("fetch", schedule.fetch_interval_hours * 3600, self.fetch_tick),
            self._every("scheduled", schedule.scheduled_check_minutes * 60, self.scheduled_tick),
            self._daily_at("quota", "00:00", self.quota_tick),
            self._daily_at("growth", "12:00", self.growth_tick),
        ]
        for time_str in schedule.posting_times:
            tasks.append(self._daily_at(f"publish@{time_str}", time_str, self.publish_tick))
        return tasks

    async def run(self) -> None:
        """Run every periodic task until cancelled."""
        schedule = self.config.schedule
        logger.info(
            "Scheduler started: topics=%s posting_times=%s auto_post=%s",
            ", ".join(schedule.topics),
            ", ".join(schedule.posting_times),
            self.config.auto_publish_enabled,
        )
        try:
            await asyncio.gather(*self.build_tasks())
        except asyncio.CancelledError:
            logger.info("Scheduler stopped")
            raise
