from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from alert_dispatch.errors import ConfigurationError


class TimeProvider:
    """Clock pinned to an explicit timezone; windows and counter boundaries both read it."""

    def __init__(self, timezone: str = "UTC") -> None:
        try:
            self.zoneinfo = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigurationError(f"Unknown timezone '{timezone}'") from exc
        self.timezone = timezone

    def now(self) -> datetime:
        return datetime.now(self.zoneinfo)


def ensure_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        raise ValueError("Naive datetime not allowed in dispatch logic")
    return dt
