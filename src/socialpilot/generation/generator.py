"""Post generation: prompt, call the provider, parse and normalize."""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING

from pydantic import ValidationError

from socialpilot.errors import GenerationError
from socialpilot.generation.models import GeneratedPost, StyleConfig, Tone
from socialpilot.generation.prompts import SYSTEM_PROMPT, build_user_prompt
from socialpilot.llm import LLMError, ProviderKeySource, call_llm, strip_json_fences

if TYPE_CHECKING:
    from socialpilot.content.models import ContentItem

logger = logging.getLogger(__name__)

_BLANK_LINES_RE = re.compile(r"\n{2,}")
_NEWLINES_RE = re.compile(r"\n+")
_SPACES_RE = re.compile(r"[ \t]+")
_PADDED_NEWLINE_RE = re.compile(r" ?\n ?")


def normalize_longform(text: str) -> str:
    """Collapse blank lines and runs of spaces, keeping single line breaks."""
    text = text.replace("\r\n", "\n")
    text = _SPACES_RE.sub(" ", text)
    text = _PADDED_NEWLINE_RE.sub("\n", text)
    text = _BLANK_LINES_RE.sub("\n", text)
    return text.strip()


def normalize_single_line(text: str) -> str:
    """Flatten to one paragraph: every line break becomes a space."""
    text = text.replace("\r\n", "\n")
    text = _NEWLINES_RE.sub(" ", text)
    text = _SPACES_RE.sub(" ", text)
    return text.strip()


def parse_generated_post(text: str, tone: Tone | str = Tone.PROFESSIONAL) -> GeneratedPost:
    """Decode the provider's JSON payload into a validated GeneratedPost.

    Accepts ``linkedin`` either as a string or as ``{"post": ...}``.

    Raises:
        GenerationError: When the payload is not JSON, lacks the tweet or the
            LinkedIn post, or fails validation.
    """
    try:
        data = json.loads(strip_json_fences(text))
    except json.JSONDecodeError as exc:
        raise GenerationError(f"Failed to parse generated posts: {exc}") from exc
    if not isinstance(data, dict):
        raise GenerationError("Failed to parse generated posts: expected a JSON object")

    twitter = data.get("twitter")
    linkedin = data.get("linkedin")
    if isinstance(linkedin, str):
        linkedin = {"post": linkedin}

    tweet = twitter.get("tweet") if isinstance(twitter, dict) else None
    post = linkedin.get("post") if isinstance(linkedin, dict) else None
    if not isinstance(tweet, str) or not tweet.strip():
        raise GenerationError("Invalid response structure: missing twitter.tweet")
    if not isinstance(post, str) or not post.strip():
        raise GenerationError("Invalid response structure: missing linkedin.post")

    raw_thread = twitter.get("thread") or []
    if isinstance(raw_thread, str):
        raw_thread = raw_thread.split("|")
    thread = [
        normalize_single_line(str(segment))
        for segment in raw_thread
        if str(segment).strip()
    ]

    try:
        return GeneratedPost(
            short_text=normalize_single_line(tweet),
            thread_segments=thread,
            longform_text=normalize_longform(post),
            tone=Tone(tone),
        )
    except (ValidationError, ValueError) as exc:
        raise GenerationError(f"Generated posts failed validation: {exc}") from exc


class PostGenerator:
    """Generates platform posts from one content item.

    When the requested provider fails and ``default_provider`` differs,
    the whole generation is retried exactly once with the default.
    """

    def __init__(
        self,
        keys: ProviderKeySource,
        *,
        default_provider: str = "groq",
        body_char_budget: int = 1500,
        timeout: int = 60,
    ) -> None:
        self._keys = keys
        self.default_provider = default_provider
        self._body_char_budget = body_char_budget
        self._timeout = timeout

    def generate(self, content: ContentItem, style: StyleConfig) -> GeneratedPost:
        provider = (style.provider or self.default_provider).lower()
        try:
            return self._generate_once(content, style.tone, provider)
        except GenerationError as exc:
            if provider == self.default_provider:
                raise
            logger.warning(
                "Generation with %s failed (%s), falling back to %s",
                provider,
                exc,
                self.default_provider,
            )
        return self._generate_once(content, style.tone, self.default_provider)

    def _generate_once(self, content: ContentItem, tone: Tone, provider: str) -> GeneratedPost:
        logger.info("Generating posts with %s for %r", provider, content.title[:80])
        user_prompt = build_user_prompt(content, tone, body_char_budget=self._body_char_budget)
        try:
            raw = call_llm(
                SYSTEM_PROMPT,
                user_prompt,
                provider=provider,
                keys=self._keys,
                timeout=self._timeout,
                json_mode=True,
                label="post-generation",
            )
        except LLMError as exc:
            raise GenerationError(str(exc)) from exc
        try:
            return parse_generated_post(raw, tone)
        except GenerationError:
            logger.debug("Unparsable %s response: %s", provider, raw[:500])
            raise
