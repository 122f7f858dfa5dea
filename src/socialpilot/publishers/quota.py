"""Monthly publish quota reporting (advisory only)."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from socialpilot.store.models import Platform, utcnow
from socialpilot.store.store import PostStore, as_utc

DAYS_PER_MONTH = 30


class QuotaStatus(BaseModel):
    """Usage for one platform in the current calendar month."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    platform: Platform
    used: int
    limit: int | None = None
    remaining: int | None = None
    daily_average: int | None = None

    @property
    def unlimited(self) -> bool:
        return self.limit is None


def month_start(now: datetime) -> datetime:
    return as_utc(now).replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def quota_report(
    store: PostStore,
    limits: dict[Platform, int | None],
    now: datetime | None = None,
) -> dict[Platform, QuotaStatus]:
    """Posts published this calendar month versus each platform's ceiling.

    ``daily_average`` is how many posts per day the remaining budget allows
    over a 30-day month. A ``None`` limit means the platform is unlimited.
    """
    since = month_start(now or utcnow())
    report: dict[Platform, QuotaStatus] = {}
    for platform, limit in limits.items():
        used = len(store.outcomes(platform=platform, since=since))
        if limit is None:
            report[platform] = QuotaStatus(platform=platform, used=used)
            continue
        remaining = max(limit - used, 0)
        report[platform] = QuotaStatus(
            platform=platform,
            used=used,
            limit=limit,
            remaining=remaining,
            daily_average=remaining // DAYS_PER_MONTH,
        )
    return report
