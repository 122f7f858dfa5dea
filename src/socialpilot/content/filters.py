"""Relevance filters applied to fetched content before generation."""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod

from socialpilot.content.models import ContentItem
from socialpilot.errors import FilterError
from socialpilot.llm import LLMError, ProviderKeySource, call_llm, strip_json_fences

logger = logging.getLogger(__name__)

POLITICAL_KEYWORDS = [
    "trump", "biden", "president", "election", "congress", "senate",
    "republican", "democrat", "political", "politics", "government",
    "white house", "administration", "campaign", "vote", "voting",
    "geopolitical", "diplomatic", "sanctions", "ukraine", "russia",
    "china policy", "venezuela", "nato", "military", "war", "defense",
    "pentagon", "state department",
]
RELIGIOUS_KEYWORDS = [
    "bible", "church", "prayer", "faith", "god", "jesus", "christian",
    "islam", "muslim", "hindu", "buddhist", "religion",
]
GAMING_KEYWORDS = [
    "playstation", "ps5", "xbox", "nintendo", "gaming", "game console",
    "video game", "gamer",
]
ENTERTAINMENT_KEYWORDS = [
    "sports", "football", "basketball", "celebrity", "movie", "film",
]

BLOCKED_KEYWORDS: dict[str, list[str]] = {
    "political": POLITICAL_KEYWORDS,
    "religious": RELIGIOUS_KEYWORDS,
    "gaming": GAMING_KEYWORDS,
    "entertainment": ENTERTAINMENT_KEYWORDS,
}

CLASSIFIER_PROMPT = """\
You screen source material for a technology-focused social media account.
The account covers AI development, coding tools, productivity, startups and
technology. It never covers politics, religion, gaming, sports or celebrity
entertainment.

Decide whether the item below is relevant.

Return ONLY valid JSON: {"decision": "relevant"} or {"decision": "filter"}"""


class RelevanceFilter(ABC):
    """Decides, per item, whether it may reach the generator."""

    @abstractmethod
    def keep(self, item: ContentItem) -> bool:
        """Return False only when the item must be dropped."""

    def apply(self, items: list[ContentItem]) -> list[ContentItem]:
        return [item for item in items if self.keep(item)]


class KeywordFilter(RelevanceFilter):
    """Static keyword-exclusion list matched against title + body."""

    def __init__(self, extra_keywords: list[str] | None = None) -> None:
        groups = dict(BLOCKED_KEYWORDS)
        if extra_keywords:
            groups["custom"] = [k.lower() for k in extra_keywords]
        # Whole words only: "war" must not hit "software"
        self._patterns = {
            category: re.compile(
                "|".join(rf"\b{re.escape(k)}\b" for k in keywords), re.IGNORECASE
            )
            for category, keywords in groups.items()
            if keywords
        }

    def blocked_category(self, item: ContentItem) -> str | None:
        """Return the name of the first keyword group the item hits."""
        combined = item.combined_text()
        for category, pattern in self._patterns.items():
            if pattern.search(combined):
                return category
        return None

    def keep(self, item: ContentItem) -> bool:
        category = self.blocked_category(item)
        if category is None:
            return True
        logger.info("Filtered %s content: %s", category, item.title[:80])
        return False


class LLMRelevanceFilter(RelevanceFilter):
    """Delegates the relevant/filter decision to a text-classification call.

    Fails open: any classification failure keeps the item.
    """

    def __init__(
        self,
        *,
        provider: str,
        keys: ProviderKeySource,
        model: str | None = None,
        timeout: int = 30,
    ) -> None:
        self._provider = provider
        self._keys = keys
        self._model = model
        self._timeout = timeout

    def classify(self, item: ContentItem) -> str:
        """Return ``"relevant"`` or ``"filter"``.

        Raises:
            FilterError: When the capability fails or its answer is unusable.
        """
        user_prompt = f"Title: {item.title}\nContent: {item.body[:500]}"
        try:
            raw = call_llm(
                CLASSIFIER_PROMPT,
                user_prompt,
                provider=self._provider,
                keys=self._keys,
                model=self._model,
                timeout=self._timeout,
                json_mode=True,
                label="relevance-filter",
            )
        except LLMError as exc:
            raise FilterError(str(exc)) from exc

        try:
            data = json.loads(strip_json_fences(raw))
        except json.JSONDecodeError as exc:
            raise FilterError(f"Unparsable classifier output: {raw[:200]}") from exc

        decision = str(data.get("decision", "")).strip().lower() if isinstance(data, dict) else ""
        if decision not in ("relevant", "filter"):
            raise FilterError(f"Unexpected classifier decision: {decision!r}")
        return decision

    def keep(self, item: ContentItem) -> bool:
        try:
            decision = self.classify(item)
        except FilterError as exc:
            logger.warning("Relevance check failed, keeping item %r: %s", item.title[:80], exc)
            return True
        if decision == "filter":
            logger.info("Classifier filtered: %s", item.title[:80])
            return False
        return True
