"""Persisted post lifecycle models.

Pure data; the sqlite store in ``store.store`` reads and writes these.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, model_validator

from socialpilot.content.models import ContentItem
from socialpilot.images.models import ImageReference


class PostStatus(StrEnum):
    """Lifecycle status of a stored post."""

    DRAFT = "draft"
    PENDING = "pending"
    POSTED = "posted"

    def can_transition(self, target: PostStatus) -> bool:
        """Posted is terminal; drafts and pending posts may swap or be posted."""
        match self:
            case PostStatus.POSTED:
                return False
            case PostStatus.DRAFT | PostStatus.PENDING:
                return target in (PostStatus.DRAFT, PostStatus.PENDING, PostStatus.POSTED)


class Platform(StrEnum):
    """Publishing destinations."""

    TWITTER = "twitter"
    LINKEDIN = "linkedin"


class InvalidTransition(ValueError):
    """Raised when a status change would break the lifecycle rules."""

    def __init__(
        self,
        post_id: int,
        current: PostStatus,
        target: PostStatus,
        reason: str = "",
    ) -> None:
        message = f"Post {post_id} cannot move from {current} to {target}"
        super().__init__(f"{message}: {reason}" if reason else message)
        self.post_id = post_id
        self.current = current
        self.target = target


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


class Post(BaseModel):
    """The unit of work tracked from generation to publication."""

    id: int
    source_content: ContentItem
    platform_texts: dict[Platform, str | list[str]] = Field(default_factory=dict)
    tone: str = "professional"
    image: ImageReference | None = None
    status: PostStatus = PostStatus.PENDING
    scheduled_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    posted_at: datetime | None = None

    @model_validator(mode="after")
    def _posted_at_matches_status(self) -> Post:
        if (self.status == PostStatus.POSTED) != (self.posted_at is not None):
            raise ValueError("posted_at must be set exactly when status is posted")
        return self

    def text_for(self, platform: Platform) -> str | list[str] | None:
        return self.platform_texts.get(platform)

    @property
    def is_thread(self) -> bool:
        return isinstance(self.platform_texts.get(Platform.TWITTER), list)


class PublishOutcome(BaseModel):
    """A successful publication on one platform."""

    platform: Platform
    post_id: str
    url: str
    occurred_at: datetime = Field(default_factory=utcnow)
    has_image: bool = False
    store_post_id: int | None = None
