"""Shared fixtures for socialpilot tests."""

from __future__ import annotations

import pytest

from socialpilot.content.models import ContentItem, ContentSource
from socialpilot.store.store import PostStore


def _make_content(
    title: str = "New AI coding assistant ships",
    body: str = "A detailed look at the release and what it means for developers.",
    *,
    topic: str = "AI",
    source: ContentSource = ContentSource.NEWS,
    url: str = "https://example.com/article",
) -> ContentItem:
    return ContentItem(source=source, topic=topic, url=url, title=title, body=body)


@pytest.fixture
def content_factory():
    return _make_content


@pytest.fixture
def content() -> ContentItem:
    return _make_content()


@pytest.fixture
def store(tmp_path) -> PostStore:
    post_store = PostStore(tmp_path / "posts.db")
    yield post_store
    post_store.close()
