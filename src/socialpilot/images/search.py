"""Image search backends: Unsplash and Google Custom Search."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from socialpilot import http
from socialpilot.config import GoogleSearchSectionConfig, UnsplashSectionConfig
from socialpilot.images.models import ImageReference, ImageSource

logger = logging.getLogger(__name__)

UNSPLASH_SEARCH_URL = "https://api.unsplash.com/search/photos"
GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"


class ImageSearch(ABC):
    """One interchangeable image-search capability."""

    @property
    @abstractmethod
    def source(self) -> ImageSource:
        """Which backend this is."""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials are present."""

    @abstractmethod
    def search(self, query: str) -> list[ImageReference]:
        """Return candidates, best first. Raises ``http.HTTPError`` on failure."""


class UnsplashSearch(ImageSearch):
    """Unsplash photo search with attribution and download confirmation."""

    def __init__(self, config: UnsplashSectionConfig) -> None:
        self._config = config

    @property
    def source(self) -> ImageSource:
        return ImageSource.UNSPLASH

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Client-ID {self._config.access_key}"}

    def search(self, query: str) -> list[ImageReference]:
        data = http.get_json(
            UNSPLASH_SEARCH_URL,
            params={
                "query": query,
                "per_page": 15,
                "orientation": "landscape",
                "content_filter": "high",
            },
            headers=self._headers(),
        )

        images: list[ImageReference] = []
        for photo in data.get("results", []) or []:
            url = (photo.get("urls") or {}).get("regular")
            if not url:
                continue
            user = photo.get("user") or {}
            images.append(
                ImageReference(
                    url=url,
                    download_confirmation_url=(photo.get("links") or {}).get("download_location"),
                    attribution_name=user.get("name") or "",
                    attribution_url=(user.get("links") or {}).get("html") or "",
                    description=photo.get("description") or photo.get("alt_description") or "",
                    source=ImageSource.UNSPLASH,
                )
            )
        return images

    def confirm_download(self, image: ImageReference) -> None:
        """Ping the download-location endpoint the Unsplash terms require.

        Failures are logged and ignored.
        """
        if not image.download_confirmation_url or not self.is_configured:
            return
        try:
            http.request("GET", image.download_confirmation_url, headers=self._headers())
        except http.HTTPError as exc:
            logger.warning("Could not confirm Unsplash download: %s", exc)


class GoogleImageSearch(ImageSearch):
    """Google Custom Search JSON API restricted to images."""

    def __init__(self, config: GoogleSearchSectionConfig) -> None:
        self._config = config

    @property
    def source(self) -> ImageSource:
        return ImageSource.GOOGLE

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    def search(self, query: str) -> list[ImageReference]:
        data = http.get_json(
            GOOGLE_SEARCH_URL,
            params={
                "key": self._config.api_key,
                "cx": self._config.engine_id,
                "q": query,
                "searchType": "image",
                "imgSize": "large",
                "safe": "active",
                "num": 10,
            },
        )

        images: list[ImageReference] = []
        for item in data.get("items", []) or []:
            link = item.get("link")
            if not link:
                continue
            images.append(
                ImageReference(
                    url=link,
                    attribution_name=item.get("displayLink") or "",
                    attribution_url=(item.get("image") or {}).get("contextLink") or "",
                    description=item.get("title") or "",
                    source=ImageSource.GOOGLE,
                )
            )
        return images
