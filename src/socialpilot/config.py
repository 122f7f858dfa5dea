"""Unified configuration loaded from .socialpilot.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from socialpilot.generation.models import Tone
from socialpilot.llm import PROVIDERS

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".socialpilot.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
    Path.home() / ".config" / "socialpilot",
]

_TRUE_VALUES = ("true", "1", "yes")


class GenerationSectionConfig(BaseModel):
    """[generation] section."""

    default_provider: str = "groq"
    default_tone: str = "professional"
    body_char_budget: int = 1500
    timeout: int = 60

    @field_validator("default_provider")
    @classmethod
    def _validate_provider(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in PROVIDERS:
            raise ValueError(f"Unknown provider {value!r}, expected one of {', '.join(PROVIDERS)}")
        return value

    @field_validator("default_tone")
    @classmethod
    def _validate_tone(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in set(Tone):
            raise ValueError(f"Unknown tone {value!r}, expected one of {', '.join(Tone)}")
        return value


class ScheduleSectionConfig(BaseModel):
    """[schedule] section."""

    topics: list[str] = Field(default_factory=lambda: ["AI", "Startups"])
    posting_times: list[str] = Field(
        default_factory=lambda: ["08:00", "12:00", "17:00", "20:00"]
    )
    auto_post: bool = False
    require_approval: bool = True
    platforms: list[str] = Field(default_factory=lambda: ["linkedin", "twitter"])
    fetch_interval_hours: int = 6
    posts_per_fetch: int = 3
    scheduled_check_minutes: int = 5
    quota_warning_threshold: int = 50

    @field_validator("posting_times")
    @classmethod
    def _validate_times(cls, value: list[str]) -> list[str]:
        for item in value:
            hours, _, minutes = item.partition(":")
            if not (hours.isdigit() and minutes.isdigit()):
                raise ValueError(f"Invalid posting time {item!r}, expected HH:MM")
            if int(hours) > 23 or int(minutes) > 59:
                raise ValueError(f"Invalid posting time {item!r}, expected HH:MM")
        return value


class StoreSectionConfig(BaseModel):
    """[store] section."""

    path: str = "./data/socialpilot.db"


class ProviderKeys(BaseModel):
    """[llm] section: API keys per text-generation provider."""

    anthropic_api_key: str = ""
    openai_api_key: str = ""
    groq_api_key: str = ""
    gemini_api_key: str = ""
    classifier_provider: str = ""

    def key_for(self, provider: str) -> str:
        return getattr(self, f"{provider}_api_key", "") or ""


class NewsSectionConfig(BaseModel):
    """[news] section."""

    api_key: str = ""
    max_age_days: int = 7
    page_size: int = 5

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class YouTubeSectionConfig(BaseModel):
    """[youtube] section."""

    api_key: str = ""
    max_age_days: int = 30
    max_results: int = 3
    fetch_transcripts: bool = True

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class RedditSectionConfig(BaseModel):
    """[reddit] section."""

    client_id: str = ""
    client_secret: str = ""
    user_agent: str = "socialpilot/0.3"
    limit: int = 5

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


class FilterSectionConfig(BaseModel):
    """[filter] section."""

    use_llm: bool = False
    extra_blocked_keywords: list[str] = Field(default_factory=list)


class UnsplashSectionConfig(BaseModel):
    """[unsplash] section."""

    access_key: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.access_key)


class GoogleSearchSectionConfig(BaseModel):
    """[google_search] section."""

    api_key: str = ""
    engine_id: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.engine_id)


class TwitterSectionConfig(BaseModel):
    """[twitter] section."""

    api_key: str = ""
    api_secret: str = ""
    access_token: str = ""
    access_secret: str = ""
    monthly_limit: int = 500
    thread_delay_seconds: float = 1.0

    @property
    def is_configured(self) -> bool:
        return all([self.api_key, self.api_secret, self.access_token, self.access_secret])


class LinkedInSectionConfig(BaseModel):
    """[linkedin] section."""

    access_token: str = ""
    person_urn: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.access_token and self.person_urn)


class SocialPilotConfig(BaseModel):
    """Top-level configuration model."""

    generation: GenerationSectionConfig = Field(default_factory=GenerationSectionConfig)
    schedule: ScheduleSectionConfig = Field(default_factory=ScheduleSectionConfig)
    store: StoreSectionConfig = Field(default_factory=StoreSectionConfig)
    llm: ProviderKeys = Field(default_factory=ProviderKeys)
    news: NewsSectionConfig = Field(default_factory=NewsSectionConfig)
    youtube: YouTubeSectionConfig = Field(default_factory=YouTubeSectionConfig)
    reddit: RedditSectionConfig = Field(default_factory=RedditSectionConfig)
    filter: FilterSectionConfig = Field(default_factory=FilterSectionConfig)
    unsplash: UnsplashSectionConfig = Field(default_factory=UnsplashSectionConfig)
    google_search: GoogleSearchSectionConfig = Field(
        default_factory=GoogleSearchSectionConfig
    )
    twitter: TwitterSectionConfig = Field(default_factory=TwitterSectionConfig)
    linkedin: LinkedInSectionConfig = Field(default_factory=LinkedInSectionConfig)

    @property
    def auto_publish_enabled(self) -> bool:
        """Whether the publish tick may act without a human approving posts."""
        return self.schedule.auto_post and not self.schedule.require_approval


def load_config(path: str | Path | None = None) -> SocialPilotConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .socialpilot.toml in CWD
    3. ~/.config/socialpilot/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged SocialPilotConfig.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        global_config = Path.home() / ".config" / "socialpilot" / "config.toml"
        if not data and global_config.exists():
            data = _load_toml(global_config)
            logger.info("Loaded config from %s", global_config)

    config = SocialPilotConfig.model_validate(data) if data else SocialPilotConfig()
    return _apply_env_vars(config)


def merge_cli_overrides(config: SocialPilotConfig, **cli_kwargs: object) -> SocialPilotConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "provider": ("generation", "default_provider"),
        "tone": ("generation", "default_tone"),
        "topics": ("schedule", "topics"),
        "platforms": ("schedule", "platforms"),
        "db_path": ("store", "path"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key in mapping:
            section, field = mapping[key]
            data[section][field] = value

    return SocialPilotConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _split_csv(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def _apply_env_vars(config: SocialPilotConfig) -> SocialPilotConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "PREFERRED_AI": ("generation", "default_provider"),
        "DEFAULT_TONE": ("generation", "default_tone"),
        "SOCIALPILOT_DB": ("store", "path"),
        "ANTHROPIC_API_KEY": ("llm", "anthropic_api_key"),
        "OPENAI_API_KEY": ("llm", "openai_api_key"),
        "GROQ_API_KEY": ("llm", "groq_api_key"),
        "GEMINI_API_KEY": ("llm", "gemini_api_key"),
        "CLASSIFIER_AI": ("llm", "classifier_provider"),
        "NEWS_API_KEY": ("news", "api_key"),
        "YOUTUBE_API_KEY": ("youtube", "api_key"),
        "REDDIT_CLIENT_ID": ("reddit", "client_id"),
        "REDDIT_CLIENT_SECRET": ("reddit", "client_secret"),
        "REDDIT_USER_AGENT": ("reddit", "user_agent"),
        "UNSPLASH_ACCESS_KEY": ("unsplash", "access_key"),
        "GOOGLE_SEARCH_API_KEY": ("google_search", "api_key"),
        "GOOGLE_SEARCH_ENGINE_ID": ("google_search", "engine_id"),
        "TWITTER_API_KEY": ("twitter", "api_key"),
        "TWITTER_API_SECRET": ("twitter", "api_secret"),
        "TWITTER_ACCESS_TOKEN": ("twitter", "access_token"),
        "TWITTER_ACCESS_SECRET": ("twitter", "access_secret"),
        "LINKEDIN_ACCESS_TOKEN": ("linkedin", "access_token"),
        "LINKEDIN_PERSON_URN": ("linkedin", "person_urn"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    # List-valued env vars
    for env_var, field in [
        ("TOPICS", "topics"),
        ("POSTING_TIMES", "posting_times"),
        ("AUTO_POST_PLATFORMS", "platforms"),
    ]:
        raw = os.environ.get(env_var)
        if raw is not None:
            values = _split_csv(raw)
            if field == "platforms":
                values = [v.lower() for v in values]
            data["schedule"][field] = values

    auto_post_raw = os.environ.get("AUTO_POST")
    if auto_post_raw is not None:
        data["schedule"]["auto_post"] = auto_post_raw.lower() in _TRUE_VALUES
    # Approval stays required unless explicitly switched off
    approval_raw = os.environ.get("REQUIRE_APPROVAL")
    if approval_raw is not None:
        data["schedule"]["require_approval"] = approval_raw.lower() != "false"
    use_llm_raw = os.environ.get("LLM_RELEVANCE_FILTER")
    if use_llm_raw is not None:
        data["filter"]["use_llm"] = use_llm_raw.lower() in _TRUE_VALUES

    for env_var, section, field in [
        ("TWITTER_MONTHLY_LIMIT", "twitter", "monthly_limit"),
        ("FETCH_INTERVAL_HOURS", "schedule", "fetch_interval_hours"),
        ("POSTS_PER_FETCH", "schedule", "posts_per_fetch"),
    ]:
        raw = os.environ.get(env_var)
        if raw is not None:
            try:
                data[section][field] = int(raw)
            except ValueError:
                logger.warning("Ignoring non-integer %s=%r", env_var, raw)

    return SocialPilotConfig.model_validate(data)
