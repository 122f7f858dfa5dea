"""Stock and search imagery for posts."""

from socialpilot.images.models import ImageReference, ImageSource
from socialpilot.images.queries import DerivedQuery, derive_query, keywords_from_content
from socialpilot.images.resolver import ImageResolver
from socialpilot.images.search import GoogleImageSearch, UnsplashSearch

__all__ = [
    "DerivedQuery",
    "GoogleImageSearch",
    "ImageReference",
    "ImageResolver",
    "ImageSource",
    "UnsplashSearch",
    "derive_query",
    "keywords_from_content",
]
