"""Tests for monthly quota reporting."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from socialpilot.publishers.quota import month_start, quota_report
from socialpilot.store.models import Platform, PublishOutcome
from socialpilot.store.store import PostStore

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


def _record(store: PostStore, content, platform: Platform, count: int, at: datetime) -> None:
    for _ in range(count):
        post = store.insert(content, {"twitter": "t", "linkedin": "l"}, tone="casual")
        store.record_outcome(
            PublishOutcome(
                platform=platform, post_id="x", url="u", occurred_at=at, store_post_id=post.id
            )
        )


class TestQuota:
    def test_month_start(self) -> None:
        assert month_start(NOW) == datetime(2026, 3, 1, tzinfo=UTC)

    def test_remaining_and_daily_average(self, store: PostStore, content) -> None:
        _record(store, content, Platform.TWITTER, 120, NOW - timedelta(days=1))
        _record(store, content, Platform.TWITTER, 7, NOW - timedelta(days=20))

        report = quota_report(store, {Platform.TWITTER: 500}, NOW)

        status = report[Platform.TWITTER]
        assert status.used == 120
        assert status.remaining == 380
        assert status.daily_average == 12

    def test_unlimited(self, store: PostStore, content) -> None:
        _record(store, content, Platform.LINKEDIN, 3, NOW)

        status = quota_report(store, {Platform.LINKEDIN: None}, NOW)[Platform.LINKEDIN]

        assert status.used == 3
        assert status.unlimited
        assert status.remaining is None

    def test_remaining_clamped(self, store: PostStore, content) -> None:
        _record(store, content, Platform.TWITTER, 6, NOW)
        status = quota_report(store, {Platform.TWITTER: 5}, NOW)[Platform.TWITTER]
        assert status.remaining == 0
        assert status.daily_average == 0

    def test_camel_case_dump(self, store: PostStore) -> None:
        status = quota_report(store, {Platform.TWITTER: 500}, NOW)[Platform.TWITTER]
        assert status.model_dump(by_alias=True)["dailyAverage"] == 16
