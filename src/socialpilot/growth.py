"""Growth analytics derived from posted posts and their engagement.

Everything here is read-only over the post store: best posting hours,
winning content patterns, recommendations, a default or data-driven
posting schedule, daily growth metrics, and a heuristic viral score.
"""

from __future__ import annotations

import logging
import re
from collections import Counter, defaultdict
from datetime import datetime, timedelta

from pydantic import BaseModel, Field

from socialpilot.store.models import utcnow
from socialpilot.store.store import PostStore, as_utc

logger = logging.getLogger(__name__)

LIKE_WEIGHT = 1
COMMENT_WEIGHT = 3
SHARE_WEIGHT = 5

DEFAULT_SCHEDULE: list[tuple[str, str]] = [
    ("08:00", "Morning commute"),
    ("11:00", "Mid-morning break"),
    ("14:00", "Post-lunch"),
    ("17:00", "End of workday"),
    ("20:00", "Evening leisure"),
]

_MULTIPLIER_RE = re.compile(r"\d{1,2}[x×]")
_LISTICLE_RE = re.compile(r"\d{1,2}\s+(steps|ways|tips|secrets|hacks)", re.IGNORECASE)
_CURIOSITY_RE = re.compile(r"\b(secret|shocking|nobody|everyone|mistake|wrong)\b", re.IGNORECASE)
_EMOJI_RE = re.compile("[\U0001F600-\U0001F64F]")


class Recommendation(BaseModel):
    type: str
    priority: str
    message: str
    reasoning: str


class ContentPatterns(BaseModel):
    topics: dict[str, int] = Field(default_factory=dict)
    tones: dict[str, int] = Field(default_factory=dict)
    content_types: dict[str, int] = Field(default_factory=dict)
    avg_length: dict[str, int] = Field(default_factory=lambda: {"twitter": 0, "linkedin": 0})


def weighted_score(likes: int, comments: int, shares: int) -> int:
    return likes * LIKE_WEIGHT + comments * COMMENT_WEIGHT + shares * SHARE_WEIGHT


def engagement_score(likes: int, comments: int, shares: int, impressions: int) -> dict[str, object]:
    """Weighted engagement and rate against impressions, e.g. ``"2.50%"``."""
    score = weighted_score(likes, comments, shares)
    rate = score / impressions * 100 if impressions > 0 else 0.0
    return {"rawScore": score, "engagementRate": f"{rate:.2f}%"}


def predict_viral_potential(text: str) -> dict[str, object]:
    """Score post text against simple virality heuristics."""
    score = 0
    indicators: list[str] = []

    if _MULTIPLIER_RE.search(text):
        score += 10
        indicators.append("Contains multiplier (3x, 10x, etc.)")
    if _LISTICLE_RE.search(text):
        score += 15
        indicators.append("Listicle format")
    if text.strip().endswith("?"):
        score += 10
        indicators.append("Ends with question")
    if _CURIOSITY_RE.search(text):
        score += 15
        indicators.append("Contains curiosity trigger")
    if len(text) < 100:
        score += 10
        indicators.append("Concise and punchy")
    if 1 <= len(_EMOJI_RE.findall(text)) <= 3:
        score += 8
        indicators.append("Optimal emoji usage")
    if text.count("\n") >= 2:
        score += 7
        indicators.append("Good formatting with line breaks")

    potential = "High" if score >= 40 else "Medium" if score >= 25 else "Low"
    return {"score": score, "potential": potential, "indicators": indicators}


def _text_length(value: object) -> int:
    if isinstance(value, list):
        return sum(len(segment) for segment in value)
    return len(value) if isinstance(value, str) else 0


class GrowthAnalyzer:
    """Read-only analytics over the post store."""

    def __init__(self, store: PostStore) -> None:
        self.store = store

    def _rows(self) -> list[dict[str, object]]:
        rows = self.store.engagement_rows()
        for row in rows:
            row["score"] = weighted_score(row["likes"], row["comments"], row["shares"])
        return rows

    def best_posting_hours(self, limit: int = 5) -> list[dict[str, object]]:
        """Hours of day ranked by average engagement."""
        by_hour: dict[str, list[int]] = defaultdict(list)
        for row in self._rows():
            posted_at = row["posted_at"]
            if posted_at is not None:
                by_hour[f"{posted_at.hour:02d}"].append(row["score"])
        ranked = sorted(
            (
                {"hour": hour, "avgEngagement": sum(scores) / len(scores), "postCount": len(scores)}
                for hour, scores in by_hour.items()
            ),
            key=lambda entry: entry["avgEngagement"],
            reverse=True,
        )
        return ranked[:limit]

    def winning_patterns(self, top: int = 20) -> ContentPatterns:
        """Topics, tones, source types and lengths among the top posts."""
        rows = sorted(self._rows(), key=lambda row: row["score"], reverse=True)[:top]
        topics: Counter[str] = Counter()
        tones: Counter[str] = Counter()
        sources: Counter[str] = Counter()
        lengths: dict[str, list[int]] = {"twitter": [], "linkedin": []}

        for row in rows:
            content = row["source_content"]
            topics[content.topic] += 1
            tones[str(row["tone"])] += 1
            sources[str(content.source)] += 1
            for platform, text in row["platform_texts"].items():
                if platform in lengths and text:
                    lengths[platform].append(_text_length(text))

        return ContentPatterns(
            topics=dict(topics),
            tones=dict(tones),
            content_types=dict(sources),
            avg_length={
                platform: round(sum(values) / len(values)) if values else 0
                for platform, values in lengths.items()
            },
        )

    def recommendations(self) -> list[Recommendation]:
        patterns = self.winning_patterns()
        best_hours = self.best_posting_hours()
        recs: list[Recommendation] = []

        top_topics = [topic for topic, _ in Counter(patterns.topics).most_common(3)]
        if top_topics:
            recs.append(
                Recommendation(
                    type="topic",
                    priority="high",
                    message=f"Focus on: {', '.join(top_topics)}",
                    reasoning="These topics generate the most engagement",
                )
            )

        top_tone = Counter(patterns.tones).most_common(1)
        if top_tone:
            recs.append(
                Recommendation(
                    type="tone",
                    priority="medium",
                    message=f'Use "{top_tone[0][0]}" tone more often',
                    reasoning="Highest engagement rate",
                )
            )

        if best_hours:
            hours = ", ".join(f"{entry['hour']}:00" for entry in best_hours[:3])
            recs.append(
                Recommendation(
                    type="timing",
                    priority="high",
                    message=f"Post at {hours}",
                    reasoning="Peak engagement windows",
                )
            )

        recs.append(
            Recommendation(
                type="frequency",
                priority="high",
                message="Post 5-7 times per day for maximum growth",
                reasoning="Consistency + volume = faster follower growth",
            )
        )

        if patterns.avg_length.get("twitter", 0) > 0:
            recs.append(
                Recommendation(
                    type="format",
                    priority="medium",
                    message=f"Optimal Twitter length: {patterns.avg_length['twitter']} characters",
                    reasoning="Based on your best-performing tweets",
                )
            )

        recs.append(
            Recommendation(
                type="engagement",
                priority="high",
                message="End LinkedIn posts with questions",
                reasoning="Drives 3x more comments",
            )
        )
        recs.append(
            Recommendation(
                type="engagement",
                priority="medium",
                message="Use controversial/hot takes on Twitter",
                reasoning="Creates debate and increases reach",
            )
        )
        return recs

    def optimal_schedule(self, posts_per_day: int = 5) -> list[dict[str, object]]:
        """Best hours from history, or sensible defaults without data."""
        best_hours = self.best_posting_hours(limit=posts_per_day)
        if not best_hours:
            return [
                {"time": time, "reason": reason}
                for time, reason in DEFAULT_SCHEDULE[:posts_per_day]
            ]
        return [
            {
                "time": f"{entry['hour']}:00",
                "avgEngagement": entry["avgEngagement"],
                "posts": entry["postCount"],
            }
            for entry in best_hours
        ]

    def growth_metrics(self, days: int = 30, now: datetime | None = None) -> dict[str, object]:
        """Daily posts and engagement, and the last-7 vs previous-7 growth rate."""
        since = as_utc(now or utcnow()) - timedelta(days=days)
        daily: dict[str, dict[str, int]] = {}
        for row in self._rows():
            posted_at = row["posted_at"]
            if posted_at is None or posted_at < since:
                continue
            day = posted_at.date().isoformat()
            entry = daily.setdefault(day, {"posts": 0, "totalEngagement": 0})
            entry["posts"] += 1
            entry["totalEngagement"] += row["score"]

        metrics = [{"date": day, **values} for day, values in sorted(daily.items(), reverse=True)]
        if len(metrics) < 2:
            return {"metrics": metrics, "growthRate": "N/A", "trend": "flat"}

        recent = metrics[:7]
        previous = metrics[7:14]
        recent_avg = sum(m["totalEngagement"] for m in recent) / len(recent)
        previous_avg = (
            sum(m["totalEngagement"] for m in previous) / len(previous) if previous else 0
        )
        if previous_avg > 0:
            rate = (recent_avg - previous_avg) / previous_avg * 100
            growth_rate = f"{rate:.1f}%"
        else:
            rate = 0.0
            growth_rate = "0%"
        trend = "up" if rate > 0 else "down" if rate < 0 else "flat"
        return {"metrics": metrics, "growthRate": growth_rate, "trend": trend}
