from __future__ import annotations

from datetime import datetime

from alert_dispatch.models import Schedule


def weekday_index(moment: datetime) -> int:
    """Weekday with Sunday as 0 and Saturday as 6."""
    return moment.isoweekday() % 7


class ScheduleGate:
    def is_allowed(self, schedule: Schedule, now: datetime, force_window: bool = False) -> bool:
        if force_window:
            return True
        if not schedule.start_hour <= now.hour <= schedule.end_hour:
            return False
        if schedule.allowed_weekdays and weekday_index(now) not in schedule.allowed_weekdays:
            return False
        return True
