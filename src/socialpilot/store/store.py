"""SQLite-backed post store.

One ``posts`` table with nested fields (source content, platform texts,
image) serialized as JSON text, plus ``publish_outcomes`` for quota
accounting and ``engagement`` for growth analytics. Every method is a
single point query or single-row mutation.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from datetime import UTC, datetime
from pathlib import Path

from socialpilot.content.models import ContentItem
from socialpilot.images.models import ImageReference
from socialpilot.store.models import (
    InvalidTransition,
    Platform,
    Post,
    PostStatus,
    PublishOutcome,
    utcnow,
)

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS posts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    source_content TEXT NOT NULL,
    platform_texts TEXT NOT NULL,
    tone TEXT NOT NULL,
    image TEXT,
    status TEXT NOT NULL DEFAULT 'pending',
    scheduled_at TEXT,
    created_at TEXT NOT NULL,
    posted_at TEXT
);

CREATE TABLE IF NOT EXISTS publish_outcomes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    store_post_id INTEGER,
    platform TEXT NOT NULL,
    platform_post_id TEXT NOT NULL,
    url TEXT NOT NULL,
    has_image INTEGER NOT NULL DEFAULT 0,
    occurred_at TEXT NOT NULL,
    UNIQUE (store_post_id, platform)
);

CREATE TABLE IF NOT EXISTS engagement (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    post_id INTEGER NOT NULL,
    platform TEXT NOT NULL,
    likes INTEGER NOT NULL DEFAULT 0,
    comments INTEGER NOT NULL DEFAULT 0,
    shares INTEGER NOT NULL DEFAULT 0,
    impressions INTEGER NOT NULL DEFAULT 0,
    recorded_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_posts_status ON posts(status);
CREATE INDEX IF NOT EXISTS idx_outcomes_platform ON publish_outcomes(platform, occurred_at);
"""


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_iso(value: datetime | None) -> str | None:
    """Fixed-width UTC ISO text so string comparison orders correctly."""
    if value is None:
        return None
    return as_utc(value).isoformat(timespec="microseconds")


def _from_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class PostStore:
    """Durable CRUD over posts, their publish outcomes and engagement."""

    def __init__(self, path: str | Path) -> None:
        self._path = str(path)
        if self._path != ":memory:":
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self._path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        with self._lock:
            self._conn.executescript(_SCHEMA)
        logger.debug("Opened post store at %s", self._path)

    def close(self) -> None:
        self._conn.close()

    # ── Private helpers ──────────────────────────────────────────

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        with self._lock, self._conn:
            return self._conn.execute(sql, params)

    def _query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            return self._conn.execute(sql, params).fetchall()

    @staticmethod
    def _row_to_post(row: sqlite3.Row) -> Post:
        image = row["image"]
        return Post(
            id=row["id"],
            source_content=ContentItem.model_validate_json(row["source_content"]),
            platform_texts=json.loads(row["platform_texts"]),
            tone=row["tone"],
            image=ImageReference.model_validate_json(image) if image else None,
            status=PostStatus(row["status"]),
            scheduled_at=_from_iso(row["scheduled_at"]),
            created_at=_from_iso(row["created_at"]),
            posted_at=_from_iso(row["posted_at"]),
        )

    def _require(self, post_id: int) -> Post:
        post = self.get(post_id)
        if post is None:
            raise KeyError(post_id)
        return post

    def _update(self, post_id: int, column: str, value: object) -> None:
        cursor = self._execute(f"UPDATE posts SET {column} = ? WHERE id = ?", (value, post_id))
        if cursor.rowcount == 0:
            raise KeyError(post_id)

    # ── Write operations ─────────────────────────────────────────

    def insert(
        self,
        source_content: ContentItem,
        platform_texts: dict[Platform, str | list[str]] | dict[str, str | list[str]],
        *,
        tone: str,
        image: ImageReference | None = None,
        status: PostStatus = PostStatus.PENDING,
        scheduled_at: datetime | None = None,
    ) -> Post:
        """Store a newly generated post as draft or pending."""
        if status == PostStatus.POSTED:
            raise ValueError("New posts start as draft or pending")
        texts = {str(Platform(platform)): text for platform, text in platform_texts.items()}
        cursor = self._execute(
            "INSERT INTO posts (source_content, platform_texts, tone, image, status,"
            " scheduled_at, created_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                source_content.model_dump_json(),
                json.dumps(texts),
                str(tone),
                image.model_dump_json() if image else None,
                str(status),
                to_iso(scheduled_at),
                to_iso(utcnow()),
            ),
        )
        post_id = cursor.lastrowid
        logger.info("Stored post %s (%s)", post_id, status)
        return self._require(post_id)

    def update_status(self, post_id: int, status: PostStatus, *, at: datetime | None = None) -> Post:
        """Move a post along its lifecycle, keeping ``posted_at`` consistent.

        Raises:
            KeyError: Unknown post id.
            InvalidTransition: Leaving ``posted``, or posting before the
                post's scheduled time.
        """
        post = self._require(post_id)
        if not post.status.can_transition(status):
            raise InvalidTransition(post_id, post.status, status)

        posted_at = None
        if status == PostStatus.POSTED:
            posted_at = as_utc(at) if at else utcnow()
            if post.scheduled_at is not None and posted_at < post.scheduled_at:
                raise InvalidTransition(
                    post_id, post.status, status, f"scheduled for {post.scheduled_at.isoformat()}"
                )

        self._execute(
            "UPDATE posts SET status = ?, posted_at = ? WHERE id = ?",
            (str(status), to_iso(posted_at), post_id),
        )
        return self._require(post_id)

    def update_image(self, post_id: int, image: ImageReference | None) -> None:
        self._update(post_id, "image", image.model_dump_json() if image else None)

    def update_texts(self, post_id: int, platform_texts: dict[Platform, str | list[str]]) -> None:
        texts = {str(Platform(platform)): text for platform, text in platform_texts.items()}
        self._update(post_id, "platform_texts", json.dumps(texts))

    def update_schedule(self, post_id: int, scheduled_at: datetime | None) -> None:
        """Set or clear the time before which the post must not be published."""
        self._update(post_id, "scheduled_at", to_iso(scheduled_at))

    def delete(self, post_id: int) -> bool:
        """Delete a post and its engagement rows. Outcomes stay for quota accounting."""
        cursor = self._execute("DELETE FROM posts WHERE id = ?", (post_id,))
        if cursor.rowcount:
            self._execute("DELETE FROM engagement WHERE post_id = ?", (post_id,))
            logger.info("Deleted post %s", post_id)
        return bool(cursor.rowcount)

    # ── Read operations ──────────────────────────────────────────

    def get(self, post_id: int) -> Post | None:
        rows = self._query("SELECT * FROM posts WHERE id = ?", (post_id,))
        return self._row_to_post(rows[0]) if rows else None

    def list_all(self) -> list[Post]:
        """All posts, most recent first."""
        rows = self._query("SELECT * FROM posts ORDER BY created_at DESC, id DESC")
        return [self._row_to_post(row) for row in rows]

    def pending(self, limit: int = 50) -> list[Post]:
        """Pending posts, most recent first."""
        rows = self._query(
            "SELECT * FROM posts WHERE status = ? ORDER BY created_at DESC, id DESC LIMIT ?",
            (str(PostStatus.PENDING), limit),
        )
        return [self._row_to_post(row) for row in rows]

    def oldest_pending(self, platform: Platform | None = None) -> Post | None:
        """Oldest unscheduled pending post, optionally requiring a platform text."""
        rows = self._query(
            "SELECT * FROM posts WHERE status = ? AND scheduled_at IS NULL"
            " ORDER BY created_at ASC, id ASC",
            (str(PostStatus.PENDING),),
        )
        for row in rows:
            post = self._row_to_post(row)
            if platform is None or post.text_for(platform):
                return post
        return None

    def due_scheduled(self, platform: Platform, now: datetime | None = None) -> list[Post]:
        """Draft or pending posts whose scheduled time has passed, oldest first."""
        rows = self._query(
            "SELECT * FROM posts WHERE status IN (?, ?) AND scheduled_at IS NOT NULL"
            " AND scheduled_at <= ? ORDER BY created_at ASC, id ASC",
            (str(PostStatus.DRAFT), str(PostStatus.PENDING), to_iso(now or utcnow())),
        )
        posts = [self._row_to_post(row) for row in rows]
        return [post for post in posts if post.text_for(platform)]

    def counts(self, now: datetime | None = None) -> dict[str, int]:
        """Totals for the analytics summary: posted, pending, posted today."""
        day_start = as_utc(now or utcnow()).replace(
            hour=0, minute=0, second=0, microsecond=0
        )
        total = self._query("SELECT COUNT(*) FROM posts WHERE status = ?", (str(PostStatus.POSTED),))
        pending = self._query(
            "SELECT COUNT(*) FROM posts WHERE status = ?", (str(PostStatus.PENDING),)
        )
        today = self._query(
            "SELECT COUNT(*) FROM posts WHERE status = ? AND posted_at >= ?",
            (str(PostStatus.POSTED), to_iso(day_start)),
        )
        return {
            "totalPosts": total[0][0],
            "pendingPosts": pending[0][0],
            "todayPosts": today[0][0],
        }

    # ── Publish outcomes ─────────────────────────────────────────

    def record_outcome(self, outcome: PublishOutcome) -> None:
        """Record a successful publication.

        Raises:
            ValueError: The post already has an outcome for this platform.
        """
        try:
            self._execute(
                "INSERT INTO publish_outcomes (store_post_id, platform, platform_post_id, url,"
                " has_image, occurred_at) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    outcome.store_post_id,
                    str(outcome.platform),
                    outcome.post_id,
                    outcome.url,
                    int(outcome.has_image),
                    to_iso(outcome.occurred_at),
                ),
            )
        except sqlite3.IntegrityError as exc:
            raise ValueError(
                f"Post {outcome.store_post_id} already published to {outcome.platform}"
            ) from exc

    def has_outcome(self, post_id: int, platform: Platform) -> bool:
        rows = self._query(
            "SELECT 1 FROM publish_outcomes WHERE store_post_id = ? AND platform = ?",
            (post_id, str(platform)),
        )
        return bool(rows)

    def outcomes(
        self,
        platform: Platform | None = None,
        since: datetime | None = None,
    ) -> list[PublishOutcome]:
        sql = "SELECT * FROM publish_outcomes WHERE 1 = 1"
        params: list[object] = []
        if platform is not None:
            sql += " AND platform = ?"
            params.append(str(platform))
        if since is not None:
            sql += " AND occurred_at >= ?"
            params.append(to_iso(since))
        rows = self._query(sql + " ORDER BY occurred_at ASC", tuple(params))
        return [
            PublishOutcome(
                platform=Platform(row["platform"]),
                post_id=row["platform_post_id"],
                url=row["url"],
                has_image=bool(row["has_image"]),
                occurred_at=_from_iso(row["occurred_at"]),
                store_post_id=row["store_post_id"],
            )
            for row in rows
        ]

    # ── Engagement ───────────────────────────────────────────────

    def record_engagement(
        self,
        post_id: int,
        platform: Platform,
        *,
        likes: int = 0,
        comments: int = 0,
        shares: int = 0,
        impressions: int = 0,
        recorded_at: datetime | None = None,
    ) -> None:
        self._execute(
            "INSERT INTO engagement (post_id, platform, likes, comments, shares, impressions,"
            " recorded_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                post_id,
                str(platform),
                likes,
                comments,
                shares,
                impressions,
                to_iso(recorded_at or utcnow()),
            ),
        )

    def engagement_rows(self) -> list[dict[str, object]]:
        """Posted posts joined with their summed engagement, one row per post."""
        rows = self._query(
            "SELECT p.id, p.posted_at, p.tone, p.source_content, p.platform_texts,"
            " COALESCE(SUM(e.likes), 0) AS likes,"
            " COALESCE(SUM(e.comments), 0) AS comments,"
            " COALESCE(SUM(e.shares), 0) AS shares,"
            " COALESCE(SUM(e.impressions), 0) AS impressions"
            " FROM posts p LEFT JOIN engagement e ON e.post_id = p.id"
            " WHERE p.status = ? GROUP BY p.id ORDER BY p.posted_at ASC",
            (str(PostStatus.POSTED),),
        )
        results: list[dict[str, object]] = []
        for row in rows:
            results.append(
                {
                    "id": row["id"],
                    "posted_at": _from_iso(row["posted_at"]),
                    "tone": row["tone"],
                    "source_content": ContentItem.model_validate_json(row["source_content"]),
                    "platform_texts": json.loads(row["platform_texts"]),
                    "likes": row["likes"],
                    "comments": row["comments"],
                    "shares": row["shares"],
                    "impressions": row["impressions"],
                }
            )
        return results
