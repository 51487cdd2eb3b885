from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class RateLimitConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_per_hour: int = Field(default=50, gt=0)
    max_per_day: int = Field(default=200, gt=0)
    min_interval_millis: int = Field(default=2000, ge=0)


class RateCounterState(BaseModel):
    """Persisted send counters.

    ``day_started_at`` and ``hour_started_at`` record the boundaries the counters
    belong to; a later check that lands past them resets the matching counter.
    """

    model_config = ConfigDict(frozen=True)

    last_send_at: datetime | None = None
    count_today: int = Field(default=0, ge=0)
    count_this_hour: int = Field(default=0, ge=0)
    day_started_at: datetime | None = None
    hour_started_at: datetime | None = None
