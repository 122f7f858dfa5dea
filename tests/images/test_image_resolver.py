"""Tests for image resolution, backend alternation and dedup."""

from __future__ import annotations

import random
from unittest.mock import MagicMock, patch

from socialpilot.config import GoogleSearchSectionConfig, UnsplashSectionConfig
from socialpilot.http import HTTPError
from socialpilot.images.models import ImageReference, ImageSource
from socialpilot.images.resolver import ImageResolver
from socialpilot.images.search import GoogleImageSearch, ImageSearch, UnsplashSearch


class FakeSearch(ImageSearch):
    def __init__(
        self,
        source: ImageSource,
        urls: list[str] | None = None,
        *,
        configured: bool = True,
        error: Exception | None = None,
    ) -> None:
        self._source = source
        self._urls = urls if urls is not None else [f"https://{source}.test/{i}" for i in range(5)]
        self._configured = configured
        self._error = error
        self.queries: list[str] = []
        self.confirmed: list[ImageReference] = []

    @property
    def source(self) -> ImageSource:
        return self._source

    @property
    def is_configured(self) -> bool:
        return self._configured

    def search(self, query: str) -> list[ImageReference]:
        self.queries.append(query)
        if self._error is not None:
            raise self._error
        return [ImageReference(url=url, source=self._source) for url in self._urls]

    def confirm_download(self, image: ImageReference) -> None:
        self.confirmed.append(image)


def _resolver(unsplash: FakeSearch | None = None, google: FakeSearch | None = None) -> ImageResolver:
    return ImageResolver(
        unsplash or FakeSearch(ImageSource.UNSPLASH),
        google or FakeSearch(ImageSource.GOOGLE),
        rng=random.Random(7),
    )


class TestImageResolver:
    def test_branded_query_prefers_google(self) -> None:
        resolver = _resolver()

        image = resolver.resolve("ai technology", "Claude just refactored my whole test suite")

        assert image is not None
        assert image.source == ImageSource.GOOGLE
        assert resolver.google.queries == ["Claude AI Anthropic"]
        assert resolver.unsplash.queries == []

    def test_alternates_by_call_parity(self) -> None:
        resolver = _resolver()
        sources = [resolver.resolve("data dashboard").source for _ in range(4)]
        assert sources == [
            ImageSource.UNSPLASH,
            ImageSource.GOOGLE,
            ImageSource.UNSPLASH,
            ImageSource.GOOGLE,
        ]

    def test_hint_used_verbatim(self) -> None:
        resolver = _resolver()
        resolver.resolve("startup entrepreneur workspace")
        assert resolver.unsplash.queries == ["startup entrepreneur workspace"]

    def test_falls_back_to_other_backend(self) -> None:
        unsplash = FakeSearch(ImageSource.UNSPLASH, error=HTTPError("rate limited", status=403))
        resolver = _resolver(unsplash=unsplash)

        image = resolver.resolve("data dashboard")

        assert image is not None and image.source == ImageSource.GOOGLE

    def test_unconfigured_backend_skipped(self) -> None:
        google = FakeSearch(ImageSource.GOOGLE, configured=False)
        resolver = _resolver(google=google)

        image = resolver.resolve("Claude", "Working with Claude")

        assert image is not None and image.source == ImageSource.UNSPLASH
        assert google.queries == []

    def test_nothing_found(self) -> None:
        resolver = _resolver(
            unsplash=FakeSearch(ImageSource.UNSPLASH, urls=[]),
            google=FakeSearch(ImageSource.GOOGLE, urls=[]),
        )
        assert resolver.resolve("anything") is None

    def test_unsplash_download_confirmed(self) -> None:
        resolver = _resolver()
        image = resolver.resolve("data dashboard")
        assert resolver.unsplash.confirmed == [image]

    def test_prefers_unused_urls(self) -> None:
        unsplash = FakeSearch(ImageSource.UNSPLASH, urls=["https://u.test/a", "https://u.test/b"])
        google = FakeSearch(ImageSource.GOOGLE, configured=False)
        resolver = ImageResolver(unsplash, google, rng=MagicMock())
        resolver._rng.choice.side_effect = lambda top: top[0]
        resolver.used_urls.add("https://u.test/a")

        # Every draw returns the used URL, so the last draw is kept
        assert resolver.resolve("x").url == "https://u.test/a"

        resolver._rng.choice.side_effect = [
            ImageReference(url="https://u.test/a"),
            ImageReference(url="https://u.test/b", source=ImageSource.UNSPLASH),
        ]
        assert resolver.resolve("x").url == "https://u.test/b"

    def test_top_candidates_only(self) -> None:
        urls = [f"https://u.test/{i}" for i in range(15)]
        resolver = _resolver(unsplash=FakeSearch(ImageSource.UNSPLASH, urls=urls))
        picked = {resolver.resolve("data dashboard").url for _ in range(0, 20, 2)}
        assert picked <= set(urls[:5]) | {f"https://google.test/{i}" for i in range(5)}

    def test_reset(self) -> None:
        resolver = _resolver()
        resolver.resolve("a")
        resolver.resolve("b")
        resolver.reset()
        assert resolver.call_count == 0
        assert resolver.used_urls == set()
        assert resolver.resolve("c").source == ImageSource.UNSPLASH

    def test_instances_independent(self) -> None:
        first, second = _resolver(), _resolver()
        first.resolve("a")
        assert second.call_count == 0
        assert second.used_urls == set()


class TestSearchBackends:
    @patch("socialpilot.http.get_json")
    def test_unsplash_parsing(self, mock_get: MagicMock) -> None:
        mock_get.return_value = {
            "results": [
                {
                    "urls": {"regular": "https://images.unsplash.com/photo-1"},
                    "links": {"download_location": "https://api.unsplash.com/photos/1/download"},
                    "user": {"name": "Ada", "links": {"html": "https://unsplash.com/@ada"}},
                    "alt_description": "a desk",
                },
                {"urls": {}},
            ]
        }
        search = UnsplashSearch(UnsplashSectionConfig(access_key="key"))

        images = search.search("desk")

        assert len(images) == 1
        assert images[0].attribution_name == "Ada"
        assert images[0].description == "a desk"
        assert mock_get.call_args.kwargs["headers"] == {"Authorization": "Client-ID key"}
        assert mock_get.call_args.kwargs["params"]["orientation"] == "landscape"

    @patch("socialpilot.http.request")
    def test_unsplash_confirm_failure_ignored(self, mock_request: MagicMock) -> None:
        mock_request.side_effect = HTTPError("boom", status=500)
        search = UnsplashSearch(UnsplashSectionConfig(access_key="key"))
        search.confirm_download(
            ImageReference(url="u", download_confirmation_url="https://api.unsplash.com/d")
        )
        mock_request.assert_called_once()

    @patch("socialpilot.http.get_json")
    def test_google_parsing(self, mock_get: MagicMock) -> None:
        mock_get.return_value = {"items": [{"link": "https://img.test/1.png", "title": "Logo"}]}
        search = GoogleImageSearch(GoogleSearchSectionConfig(api_key="k", engine_id="cx"))

        images = search.search("Claude AI Anthropic")

        assert [image.url for image in images] == ["https://img.test/1.png"]
        assert images[0].source == ImageSource.GOOGLE
        assert mock_get.call_args.kwargs["params"]["searchType"] == "image"


class TestTransportFailures:
    def _resolver(self) -> ImageResolver:
        return ImageResolver(
            UnsplashSearch(UnsplashSectionConfig(access_key="key")),
            GoogleImageSearch(GoogleSearchSectionConfig(api_key="k", engine_id="cx")),
            rng=random.Random(7),
        )

    @patch("socialpilot.http.urllib.request.urlopen")
    def test_read_timeout_resolves_to_none(self, mock_open: MagicMock) -> None:
        mock_open.return_value.__enter__.return_value.read.side_effect = TimeoutError(
            "read timed out"
        )
        assert self._resolver().resolve("data dashboard") is None
        assert mock_open.call_count == 2

    @patch("socialpilot.http.urllib.request.urlopen")
    def test_html_body_resolves_to_none(self, mock_open: MagicMock) -> None:
        response = mock_open.return_value.__enter__.return_value
        response.status = 200
        response.read.return_value = b"<html>502</html>"
        assert self._resolver().resolve("data dashboard") is None
