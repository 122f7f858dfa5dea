"""Image reference model."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class ImageSource(StrEnum):
    UNSPLASH = "unsplash"
    GOOGLE = "google"


class ImageReference(BaseModel):
    """An illustration for a post, retrievable by plain GET at publish time."""

    url: str
    download_confirmation_url: str | None = None
    attribution_name: str = ""
    attribution_url: str = ""
    description: str = ""
    source: ImageSource = ImageSource.UNSPLASH
