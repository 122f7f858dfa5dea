"""Request bodies for the HTTP API (camelCase on the wire)."""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from socialpilot.content.models import ContentItem, ContentSource
from socialpilot.generation.models import Tone
from socialpilot.store.models import Platform


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FetchContentRequest(_CamelModel):
    topics: list[str] | None = None


class ContentPayload(_CamelModel):
    source: ContentSource = ContentSource.NEWS
    topic: str = ""
    url: str = ""
    title: str = ""
    body: str = Field(default="", validation_alias=AliasChoices("body", "content"))
    published_at: datetime | None = None

    def to_item(self) -> ContentItem:
        return ContentItem(
            source=self.source,
            topic=self.topic,
            url=self.url,
            title=self.title,
            body=self.body,
            published_at=self.published_at,
        )


class GeneratePostsRequest(_CamelModel):
    content: ContentPayload
    ai_provider: str | None = None
    tone: Tone | None = None
    use_thread: bool = False


class PublishRequest(_CamelModel):
    platforms: list[Platform] | None = None
    edited_content: dict[Platform, str | list[str]] | None = None


class SchedulePostRequest(_CamelModel):
    post_id: int
    scheduled_time: datetime | None = None


class PredictViralRequest(_CamelModel):
    text: str
