from __future__ import annotations

from datetime import datetime, timedelta

from alert_dispatch.models import RetryPolicy


class RetryEngine:
    def __init__(self, policy: RetryPolicy | None = None) -> None:
        self.policy = policy or RetryPolicy()

    def delay_seconds(self, retry_number: int) -> float:
        multiplier = retry_number if self.policy.use_exponential_backoff else 1
        return self.policy.base_delay_millis * multiplier / 1000

    def next_attempt(self, retry_number: int, now: datetime) -> datetime:
        return now + timedelta(seconds=self.delay_seconds(retry_number))

    def should_retry(self, retry_count: int) -> bool:
        return retry_count < self.policy.max_attempts
