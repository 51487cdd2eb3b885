from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from alert_dispatch.models import RateCounterState, RateLimitConfig


class RateLimitFailure(str, Enum):
    too_soon = "too_soon"
    daily_limit_exceeded = "daily_limit_exceeded"
    hourly_limit_exceeded = "hourly_limit_exceeded"


@dataclass(frozen=True)
class Reservation:
    """The counter windows a committed send was charged to."""

    day_started_at: datetime | None
    hour_started_at: datetime | None

    @classmethod
    def of(cls, state: RateCounterState) -> Reservation:
        return cls(day_started_at=state.day_started_at, hour_started_at=state.hour_started_at)


def _day_start(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0).astimezone(timezone.utc)


def _hour_start(now: datetime) -> datetime:
    return now.replace(minute=0, second=0, microsecond=0).astimezone(timezone.utc)


def _utc(moment: datetime) -> datetime:
    return moment.astimezone(timezone.utc)


class RateLimiter:
    """Pure checks over a ``RateCounterState``; every method returns a new state.

    ``now`` must already be expressed in the configured timezone so that the
    day boundary is local midnight. Boundaries are stored and compared in UTC so
    the repeated hour of a DST fall-back still starts a new hourly window.
    """

    def roll_over(self, state: RateCounterState, now: datetime) -> RateCounterState:
        day_start = _day_start(now)
        hour_start = _hour_start(now)
        updates: dict[str, object] = {}
        if state.day_started_at is None or _utc(state.day_started_at) < day_start:
            updates.update(count_today=0, day_started_at=day_start)
        if state.hour_started_at is None or _utc(state.hour_started_at) < hour_start:
            updates.update(count_this_hour=0, hour_started_at=hour_start)
        if not updates:
            return state
        return state.model_copy(update=updates)

    def check_and_reserve(
        self,
        config: RateLimitConfig,
        state: RateCounterState,
        now: datetime,
    ) -> RateLimitFailure | None:
        state = self.roll_over(state, now)
        if state.last_send_at is not None:
            elapsed_ms = (_utc(now) - _utc(state.last_send_at)).total_seconds() * 1000
            if elapsed_ms < config.min_interval_millis:
                return RateLimitFailure.too_soon
        if state.count_today >= config.max_per_day:
            return RateLimitFailure.daily_limit_exceeded
        if state.count_this_hour >= config.max_per_hour:
            return RateLimitFailure.hourly_limit_exceeded
        return None

    def commit(self, state: RateCounterState, now: datetime) -> RateCounterState:
        state = self.roll_over(state, now)
        return state.model_copy(
            update={
                "count_today": state.count_today + 1,
                "count_this_hour": state.count_this_hour + 1,
                "last_send_at": now,
            }
        )

    def release(self, state: RateCounterState, reservation: Reservation) -> RateCounterState:
        """Give back a slot whose send failed, unless its window has already rolled over.

        ``last_send_at`` is kept: the attempt still counts for spacing.
        """
        updates: dict[str, object] = {}
        if state.day_started_at == reservation.day_started_at and state.count_today > 0:
            updates["count_today"] = state.count_today - 1
        if state.hour_started_at == reservation.hour_started_at and state.count_this_hour > 0:
            updates["count_this_hour"] = state.count_this_hour - 1
        if not updates:
            return state
        return state.model_copy(update=updates)
