"""Image resolution with backend alternation and in-session dedup."""

from __future__ import annotations

import logging
import random

from socialpilot import http
from socialpilot.config import SocialPilotConfig
from socialpilot.errors import ImageError
from socialpilot.images.models import ImageReference, ImageSource
from socialpilot.images.queries import DerivedQuery, derive_query, match_branded_tool
from socialpilot.images.search import GoogleImageSearch, ImageSearch, UnsplashSearch

logger = logging.getLogger(__name__)

TOP_CANDIDATES = 5
RANDOM_DRAWS = 3


class ImageResolver:
    """Finds an illustration for a post.

    Holds its own call counter and used-URL set so each instance (one per
    process in production, one per test) has independent, resettable state.

    Branded queries always try Google first. Other queries alternate by call
    parity: even calls try Unsplash first, odd calls Google. Each backend
    falls back to the other.
    """

    def __init__(
        self,
        unsplash: UnsplashSearch,
        google: GoogleImageSearch,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self.unsplash = unsplash
        self.google = google
        self._rng = rng or random.Random()
        self.call_count = 0
        self.used_urls: set[str] = set()

    @classmethod
    def from_config(cls, config: SocialPilotConfig) -> ImageResolver:
        return cls(UnsplashSearch(config.unsplash), GoogleImageSearch(config.google_search))

    def reset(self) -> None:
        self.call_count = 0
        self.used_urls.clear()

    def order_for(self, branded: bool, call_number: int) -> list[ImageSearch]:
        """Backends in the order they should be tried."""
        if branded or call_number % 2 == 1:
            return [self.google, self.unsplash]
        return [self.unsplash, self.google]

    @staticmethod
    def query_for(search_hint: str, post_text: str | None = None) -> DerivedQuery:
        """Post text drives the query when given; otherwise the hint does.

        A bare hint is used verbatim unless it names a branded tool.
        """
        if post_text:
            return derive_query(post_text)
        hint = (search_hint or "").strip()
        branded = match_branded_tool(hint) if hint else None
        if branded:
            return DerivedQuery(branded, True)
        return DerivedQuery(hint, False) if hint else derive_query(None)

    def resolve(self, search_hint: str, post_text: str | None = None) -> ImageReference | None:
        """Return an image for the post, or None when nothing was found."""
        call_number = self.call_count
        self.call_count += 1

        query, branded = self.query_for(search_hint, post_text)

        for backend in self.order_for(branded, call_number):
            if not backend.is_configured:
                logger.debug("Image search %s not configured, skipping", backend.source)
                continue
            try:
                candidates = backend.search(query)
            except http.HTTPError as exc:
                logger.warning("Image search %s failed for %r: %s", backend.source, query, exc)
                continue
            if not candidates:
                logger.info("Image search %s found nothing for %r", backend.source, query)
                continue

            image = self._pick(candidates)
            self.used_urls.add(image.url)
            if image.source == ImageSource.UNSPLASH:
                self.unsplash.confirm_download(image)
            logger.info("Selected %s image for %r", image.source, query)
            return image

        logger.warning("%s", ImageError(f"No image found for {query!r}"))
        return None

    def _pick(self, candidates: list[ImageReference]) -> ImageReference:
        top = candidates[:TOP_CANDIDATES]
        choice = top[0]
        for _ in range(RANDOM_DRAWS):
            choice = self._rng.choice(top)
            if choice.url not in self.used_urls:
                return choice
        return choice
