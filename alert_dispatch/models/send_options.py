from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from alert_dispatch.models.schedule import Schedule


class Priority(str, Enum):
    low = "low"
    normal = "normal"
    high = "high"
    critical = "critical"
    urgent = "urgent"


class SendOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    priority: Priority = Priority.normal
    force_window: bool = False
    allow_retry: bool = True
    window_override: Schedule | None = None
    provider: str | None = None
