"""Tests for the orchestrator ticks and manual paths."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from socialpilot.config import SocialPilotConfig
from socialpilot.errors import GenerationError
from socialpilot.generation.models import GeneratedPost, Tone
from socialpilot.http import HTTPError
from socialpilot.images.models import ImageReference
from socialpilot.orchestrator import Orchestrator, next_run_at
from socialpilot.publishers.publisher import Publisher
from socialpilot.store.models import Platform, PostStatus
from socialpilot.store.store import PostStore

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


def _generated() -> GeneratedPost:
    return GeneratedPost(
        short_text="Short take",
        thread_segments=["one", "two"],
        longform_text="Longer take.",
        tone=Tone.CASUAL,
    )


def _publisher(store: PostStore) -> Publisher:
    twitter = MagicMock()
    twitter.is_configured = True
    twitter.create_tweet.return_value = "t1"
    linkedin = MagicMock()
    linkedin.is_configured = True
    linkedin.share.return_value = ("urn:li:share:1", False)
    return Publisher(store, twitter, linkedin, sleep=lambda _: None)


def _orchestrator(
    store: PostStore,
    items: list | None = None,
    *,
    auto_post: bool = False,
    require_approval: bool = True,
) -> Orchestrator:
    config = SocialPilotConfig()
    config.schedule.auto_post = auto_post
    config.schedule.require_approval = require_approval
    config.schedule.posts_per_fetch = 2

    fetcher = MagicMock()
    fetcher.fetch = AsyncMock(return_value=items or [])
    generator = MagicMock()
    generator.generate.return_value = _generated()
    resolver = MagicMock()
    resolver.resolve.return_value = ImageReference(url="https://img.test/1")

    return Orchestrator(
        config,
        fetcher,
        generator,
        resolver,
        store,
        _publisher(store),
        clock=lambda: NOW,
    )


class TestNextRunAt:
    def test_later_today(self) -> None:
        now = datetime(2026, 3, 15, 7, 30)
        assert next_run_at("08:00", now) == datetime(2026, 3, 15, 8, 0)

    def test_passed_rolls_to_tomorrow(self) -> None:
        now = datetime(2026, 3, 15, 20, 0)
        assert next_run_at("08:00", now) == datetime(2026, 3, 16, 8, 0)

    def test_exact_time_is_next_day(self) -> None:
        now = datetime(2026, 3, 15, 8, 0)
        assert next_run_at("08:00", now) == datetime(2026, 3, 16, 8, 0)


class TestFetchTick:
    def test_stores_drafts_without_auto_post(self, store: PostStore, content_factory) -> None:
        items = [content_factory(title=f"Item {i}") for i in range(3)]
        orchestrator = _orchestrator(store, items)

        posts = asyncio.run(orchestrator.fetch_tick())

        assert len(posts) == 2
        assert all(post.status == PostStatus.DRAFT for post in posts)
        assert posts[0].image.url == "https://img.test/1"
        assert posts[0].text_for(Platform.TWITTER) == "Short take"
        orchestrator.fetcher.fetch.assert_awaited_once_with(["AI", "Startups"])

    def test_stores_pending_with_auto_post(self, store: PostStore, content) -> None:
        orchestrator = _orchestrator(store, [content], auto_post=True)
        posts = asyncio.run(orchestrator.fetch_tick())
        assert posts[0].status == PostStatus.PENDING

    def test_generation_failure_skips_item(
        self, store: PostStore, content_factory, caplog: pytest.LogCaptureFixture
    ) -> None:
        items = [content_factory(title="Bad"), content_factory(title="Good")]
        orchestrator = _orchestrator(store, items)
        orchestrator.generator.generate.side_effect = [GenerationError("bad json"), _generated()]

        with caplog.at_level(logging.ERROR):
            posts = asyncio.run(orchestrator.fetch_tick())

        assert [post.source_content.title for post in posts] == ["Good"]
        assert "bad json" in caplog.text

    def test_image_query_uses_post_text(self, store: PostStore, content) -> None:
        orchestrator = _orchestrator(store, [content])
        asyncio.run(orchestrator.fetch_tick())
        hint, post_text = orchestrator.resolver.resolve.call_args.args
        assert hint == "artificial intelligence coding developer"
        assert post_text == "Longer take."


class TestPublishTick:
    def test_gated_when_approval_required(self, store: PostStore, content) -> None:
        orchestrator = _orchestrator(store, auto_post=True, require_approval=True)
        store.insert(content, {"twitter": "t", "linkedin": "l"}, tone="casual")

        assert asyncio.run(orchestrator.publish_tick()) == {}
        assert store.pending()[0].status == PostStatus.PENDING

    def test_publishes_oldest_pending(self, store: PostStore, content) -> None:
        orchestrator = _orchestrator(store, auto_post=True, require_approval=False)
        first = store.insert(content, {"twitter": "t", "linkedin": "l"}, tone="casual")
        second = store.insert(content, {"twitter": "t", "linkedin": "l"}, tone="casual")
        store.insert(content, {"twitter": "t"}, tone="casual", status=PostStatus.DRAFT)

        results = asyncio.run(orchestrator.publish_tick())

        assert list(results) == [first.id]
        assert set(results[first.id]) == {Platform.LINKEDIN, Platform.TWITTER}
        assert store.get(first.id).status == PostStatus.POSTED
        assert store.get(second.id).status == PostStatus.PENDING

    def test_due_scheduled_first(self, store: PostStore, content) -> None:
        orchestrator = _orchestrator(store, auto_post=True, require_approval=False)
        store.insert(content, {"twitter": "t", "linkedin": "l"}, tone="casual")
        scheduled = store.insert(
            content,
            {"twitter": "t", "linkedin": "l"},
            tone="casual",
            status=PostStatus.DRAFT,
            scheduled_at=NOW - timedelta(minutes=1),
        )

        results = asyncio.run(orchestrator.scheduled_tick())

        assert list(results) == [scheduled.id]

    def test_scheduled_tick_ignores_pending(self, store: PostStore, content) -> None:
        orchestrator = _orchestrator(store, auto_post=True, require_approval=False)
        store.insert(content, {"twitter": "t", "linkedin": "l"}, tone="casual")
        store.insert(
            content,
            {"twitter": "t"},
            tone="casual",
            scheduled_at=NOW + timedelta(hours=1),
        )

        assert asyncio.run(orchestrator.scheduled_tick()) == {}

    def test_failed_post_leaves_queue(self, store: PostStore, content) -> None:
        orchestrator = _orchestrator(store, auto_post=True, require_approval=False)
        orchestrator.config.schedule.platforms = ["twitter"]
        twitter = orchestrator.publisher.twitter
        twitter.create_tweet.side_effect = [HTTPError("Service Unavailable", status=503), "t9"]
        stuck = store.insert(content, {"twitter": "first"}, tone="casual")
        nxt = store.insert(content, {"twitter": "second"}, tone="casual")

        asyncio.run(orchestrator.publish_tick())
        asyncio.run(orchestrator.publish_tick())

        assert store.get(stuck.id).status == PostStatus.DRAFT
        assert store.get(nxt.id).status == PostStatus.POSTED
        assert [c.args[0] for c in twitter.create_tweet.call_args_list] == ["first", "second"]

    def test_interrupted_thread_not_reposted(self, store: PostStore, content) -> None:
        orchestrator = _orchestrator(store, auto_post=True, require_approval=False)
        orchestrator.config.schedule.platforms = ["twitter"]
        twitter = orchestrator.publisher.twitter
        twitter.create_tweet.side_effect = ["t1", HTTPError("Too Many Requests", status=429), "t3"]
        thread = store.insert(content, {"twitter": ["s1", "s2", "s3"]}, tone="casual")
        nxt = store.insert(content, {"twitter": "next"}, tone="casual")

        asyncio.run(orchestrator.publish_tick())
        asyncio.run(orchestrator.publish_tick())

        assert [c.args[0] for c in twitter.create_tweet.call_args_list] == ["s1", "s2", "next"]
        assert store.get(thread.id).status == PostStatus.POSTED
        assert store.get(nxt.id).status == PostStatus.POSTED

    def test_unconfigured_platform_not_selected(self, store: PostStore, content) -> None:
        orchestrator = _orchestrator(store, auto_post=True, require_approval=False)
        orchestrator.publisher.linkedin.is_configured = False
        post = store.insert(content, {"linkedin": "only linkedin"}, tone="casual")

        assert asyncio.run(orchestrator.publish_tick()) == {}
        assert store.get(post.id).status == PostStatus.PENDING


class TestManualPaths:
    def test_approve_clears_schedule(self, store: PostStore, content) -> None:
        orchestrator = _orchestrator(store)
        post = store.insert(
            content,
            {"twitter": "t", "linkedin": "l"},
            tone="casual",
            scheduled_at=datetime.now(tz=UTC) + timedelta(days=1),
        )

        results = asyncio.run(orchestrator.approve_and_publish(post.id, [Platform.TWITTER]))

        assert results[Platform.TWITTER].ok
        stored = store.get(post.id)
        assert stored.status == PostStatus.POSTED
        assert stored.scheduled_at is None

    def test_approve_unknown(self, store: PostStore) -> None:
        with pytest.raises(KeyError):
            asyncio.run(_orchestrator(store).approve_and_publish(404))

    def test_generate_for_thread(self, store: PostStore, content) -> None:
        orchestrator = _orchestrator(store)
        post = asyncio.run(orchestrator.generate_for(content, prefer_thread=True))
        assert post.text_for(Platform.TWITTER) == ["one", "two"]
        assert post.status == PostStatus.PENDING

    def test_regenerate_image(self, store: PostStore, content) -> None:
        orchestrator = _orchestrator(store)
        post = store.insert(content, {"linkedin": "About Claude"}, tone="casual")
        orchestrator.resolver.resolve.return_value = ImageReference(url="https://img.test/new")

        image = asyncio.run(orchestrator.regenerate_image(post.id))

        assert image.url == "https://img.test/new"
        assert store.get(post.id).image.url == "https://img.test/new"
        assert orchestrator.resolver.resolve.call_args.args[1] == "About Claude"

    def test_regenerate_image_keeps_old_when_none_found(self, store: PostStore, content) -> None:
        orchestrator = _orchestrator(store)
        old = ImageReference(url="https://img.test/old")
        post = store.insert(content, {"linkedin": "About Claude"}, tone="casual", image=old)
        orchestrator.resolver.resolve.return_value = None

        assert asyncio.run(orchestrator.regenerate_image(post.id)) is None
        assert store.get(post.id).image.url == "https://img.test/old"


class TestQuotaTick:
    def test_warns_near_limit(
        self, store: PostStore, content, caplog: pytest.LogCaptureFixture
    ) -> None:
        orchestrator = _orchestrator(store)
        orchestrator.config.twitter.monthly_limit = 10

        with caplog.at_level(logging.WARNING):
            report = orchestrator.quota_tick(NOW)

        assert report[Platform.TWITTER].remaining == 10
        assert report[Platform.LINKEDIN].unlimited
        assert "Approaching Twitter monthly limit" in caplog.text


class TestScheduler:
    def test_builds_task_per_posting_time(self, store: PostStore) -> None:
        orchestrator = _orchestrator(store)
        tasks = orchestrator.build_tasks()
        try:
            assert len(tasks) == 4 + len(orchestrator.config.schedule.posting_times)
        finally:
            for task in tasks:
                task.close()

    def test_tick_failure_logged(
        self, store: PostStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        orchestrator = _orchestrator(store)

        def boom() -> None:
            raise RuntimeError("store locked")

        with caplog.at_level(logging.ERROR):
            asyncio.run(orchestrator._run_tick("fetch", boom))

        assert "fetch tick failed" in caplog.text
