"""Tests for the news, video and forum source clients."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from socialpilot.config import NewsSectionConfig, RedditSectionConfig, YouTubeSectionConfig
from socialpilot.content.filters import KeywordFilter
from socialpilot.content.models import ContentSource
from socialpilot.content.sources import NewsSource, RedditSource, YouTubeSource
from socialpilot.content.sources.news import parse_timestamp
from socialpilot.content.sources.reddit import subreddits_for
from socialpilot.content.sources.youtube import TRANSCRIPT_CHAR_LIMIT
from socialpilot.http import Response


class TestNewsSource:
    def test_unconfigured(self) -> None:
        assert not NewsSource(NewsSectionConfig()).is_configured

    @patch("socialpilot.http.get_json")
    def test_maps_articles(self, mock_get: MagicMock) -> None:
        mock_get.return_value = {
            "articles": [
                {
                    "title": "LLM benchmarks updated",
                    "description": "A new leaderboard.",
                    "url": "https://news.example/1",
                    "publishedAt": "2026-03-01T10:00:00Z",
                },
                {"title": "No body here", "description": None, "content": None},
            ]
        }
        source = NewsSource(NewsSectionConfig(api_key="k", page_size=5))

        items = source.fetch("AI")

        assert len(items) == 1
        item = items[0]
        assert item.source == ContentSource.NEWS
        assert item.topic == "AI"
        assert item.body == "A new leaderboard."
        assert item.published_at is not None and item.published_at.year == 2026
        params = mock_get.call_args.kwargs["params"]
        assert params["q"] == "AI"
        assert params["sortBy"] == "publishedAt"
        assert params["pageSize"] == 5
        assert params["apiKey"] == "k"

    @patch("socialpilot.http.get_json")
    def test_relevance_filter_applied(self, mock_get: MagicMock) -> None:
        mock_get.return_value = {
            "articles": [
                {"title": "Election night", "description": "Votes counted."},
                {"title": "Rust 2.0", "description": "Compiler release."},
            ]
        }
        source = NewsSource(NewsSectionConfig(api_key="k"), relevance_filter=KeywordFilter())
        assert [item.title for item in source.fetch("Tech")] == ["Rust 2.0"]

    def test_parse_timestamp(self) -> None:
        assert parse_timestamp(None) is None
        assert parse_timestamp("not a date") is None
        assert parse_timestamp("2026-01-02T03:04:05Z").tzinfo is not None


class TestYouTubeSource:
    def _search_result(self) -> dict:
        return {
            "items": [
                {
                    "id": {"videoId": "abc123"},
                    "snippet": {
                        "title": "Building agents",
                        "description": "Video description.",
                        "publishedAt": "2026-03-01T10:00:00Z",
                    },
                },
                {"id": {}, "snippet": {"title": "Channel, not a video"}},
            ]
        }

    @patch("socialpilot.http.get_json")
    def test_transcript_is_body(self, mock_get: MagicMock) -> None:
        mock_get.return_value = self._search_result()
        transcripts = MagicMock()
        transcripts.fetch.return_value = [
            SimpleNamespace(text="hello"),
            SimpleNamespace(text="x" * 3000),
        ]
        source = YouTubeSource(YouTubeSectionConfig(api_key="k"), transcript_api=transcripts)

        items = source.fetch("AI")

        assert len(items) == 1
        assert items[0].url == "https://www.youtube.com/watch?v=abc123"
        assert items[0].body.startswith("hello x")
        assert len(items[0].body) == TRANSCRIPT_CHAR_LIMIT
        transcripts.fetch.assert_called_once_with("abc123")

    @patch("socialpilot.http.get_json")
    def test_missing_transcript_falls_back_to_description(self, mock_get: MagicMock) -> None:
        mock_get.return_value = self._search_result()
        transcripts = MagicMock()
        transcripts.fetch.side_effect = RuntimeError("Transcripts are disabled")
        source = YouTubeSource(YouTubeSectionConfig(api_key="k"), transcript_api=transcripts)

        items = source.fetch("AI")

        assert items[0].body == "Video description."

    @patch("socialpilot.http.get_json")
    def test_transcripts_disabled(self, mock_get: MagicMock) -> None:
        mock_get.return_value = self._search_result()
        transcripts = MagicMock()
        config = YouTubeSectionConfig(api_key="k", fetch_transcripts=False)

        items = YouTubeSource(config, transcript_api=transcripts).fetch("AI")

        assert items[0].body == "Video description."
        transcripts.fetch.assert_not_called()


class TestRedditSource:
    def _config(self) -> RedditSectionConfig:
        return RedditSectionConfig(client_id="id", client_secret="secret")

    def test_subreddit_map(self) -> None:
        assert subreddits_for("AI") == "MachineLearning+artificial+OpenAI"
        assert subreddits_for("Web Dev") == "webdev"

    @patch("socialpilot.http.get_json")
    @patch("socialpilot.http.request")
    def test_fetch_with_token(self, mock_request: MagicMock, mock_get: MagicMock) -> None:
        mock_request.return_value = Response(
            status=200,
            body=json.dumps({"access_token": "tok", "expires_in": 3600}).encode(),
        )
        mock_get.return_value = {
            "data": {
                "children": [
                    {
                        "data": {
                            "title": "Show: my side project",
                            "selftext": "",
                            "permalink": "/r/startups/comments/1",
                            "score": 42,
                            "created_utc": 1767225600,
                        }
                    }
                ]
            }
        }
        source = RedditSource(self._config())

        items = source.fetch("Startups")
        source.fetch("Startups")

        assert len(items) == 1
        item = items[0]
        assert item.source == ContentSource.FORUM
        assert item.body == item.title
        assert item.score == 42
        assert item.url == "https://reddit.com/r/startups/comments/1"
        # Token is cached between fetches
        assert mock_request.call_count == 1
        headers = mock_get.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer tok"
        assert "startups+Entrepreneur" in mock_get.call_args.args[0]
