"""Data models for generated posts."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

TWEET_CHAR_LIMIT = 280


class Tone(StrEnum):
    """Stylistic register of generated text."""

    PROFESSIONAL = "professional"
    CASUAL = "casual"
    MOTIVATIONAL = "motivational"
    FUNNY = "funny"
    CONTROVERSIAL = "controversial"


class StyleConfig(BaseModel):
    """Which provider to ask and in which tone."""

    provider: str = "groq"
    tone: Tone = Tone.PROFESSIONAL


class GeneratedPost(BaseModel):
    """Validated, whitespace-normalized output of one generation call."""

    short_text: str
    thread_segments: list[str] = Field(default_factory=list)
    longform_text: str
    tone: Tone = Tone.PROFESSIONAL

    @field_validator("short_text")
    @classmethod
    def _short_text_fits(cls, value: str) -> str:
        if not value:
            raise ValueError("short_text is empty")
        if len(value) > TWEET_CHAR_LIMIT:
            raise ValueError(f"short_text is {len(value)} chars, limit is {TWEET_CHAR_LIMIT}")
        return value

    @field_validator("longform_text")
    @classmethod
    def _longform_single_block(cls, value: str) -> str:
        if not value:
            raise ValueError("longform_text is empty")
        if "\n\n" in value:
            raise ValueError("longform_text contains blank-line breaks")
        return value

    def platform_texts(self, *, prefer_thread: bool = False) -> dict[str, str | list[str]]:
        """Per-platform payloads.

        Twitter gets the single tweet unless ``prefer_thread`` is set and a
        thread was generated.
        """
        twitter: str | list[str] = self.short_text
        if prefer_thread and self.thread_segments:
            twitter = list(self.thread_segments)
        return {"twitter": twitter, "linkedin": self.longform_text}
