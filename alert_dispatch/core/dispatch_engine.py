from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from enum import Enum

from alert_dispatch.core.counter_store import CounterStore
from alert_dispatch.core.provider_registry import ProviderRegistry
from alert_dispatch.core.rate_limiter import RateLimiter, RateLimitFailure, Reservation
from alert_dispatch.core.retry_engine import RetryEngine
from alert_dispatch.core.schedule_gate import ScheduleGate
from alert_dispatch.core.time_provider import TimeProvider, ensure_aware
from alert_dispatch.models import (
    DeliveryResult,
    FailureReason,
    RateCounterState,
    RateLimitConfig,
    RetryPolicy,
    Schedule,
    SendOptions,
)
from alert_dispatch.providers import BaseProvider


logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class DispatchState(str, Enum):
    pending = "pending"
    window_check = "window_check"
    rate_check = "rate_check"
    sending = "sending"
    retry_wait = "retry_wait"
    success = "success"
    failed = "failed"


class DispatchEngine:
    """Gates, sends and retries a single message.

    The window check runs before the rate check, which runs before any send, so
    an out-of-window message never consumes a rate slot. The rate slot is
    reserved atomically in the counter store before the first send and handed
    back if the send finally fails. Retries skip both gates, and nothing is
    locked while a retry waits.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        counter_store: CounterStore,
        *,
        default_provider: str,
        schedule: Schedule | None = None,
        rate_limit: RateLimitConfig | None = None,
        retry_policy: RetryPolicy | None = None,
        time_provider: TimeProvider | None = None,
        sleep: Sleep = asyncio.sleep,
        max_length: int = 4096,
    ) -> None:
        self.registry = registry
        self.counter_store = counter_store
        self.default_provider = registry.get(default_provider)
        self.schedule = schedule or Schedule()
        self.rate_limit = rate_limit or RateLimitConfig()
        self.retry_engine = RetryEngine(retry_policy)
        self.time_provider = time_provider or TimeProvider()
        self.sleep = sleep
        self.max_length = max_length
        self.gate = ScheduleGate()
        self.limiter = RateLimiter()

    @property
    def retry_policy(self) -> RetryPolicy:
        return self.retry_engine.policy

    async def counters(self) -> RateCounterState:
        return await self.counter_store.load()

    async def dispatch(
        self,
        text: str,
        options: SendOptions | None = None,
        *,
        deadline: datetime | None = None,
    ) -> DeliveryResult:
        options = options or SendOptions()
        if deadline is not None:
            deadline = ensure_aware(deadline)
        self._transition(DispatchState.pending, priority=options.priority.value)

        if options.provider is not None and options.provider not in self.registry:
            return self._fail(FailureReason.invalid_message, detail=f"unknown provider '{options.provider}'")
        provider = self.registry.get(options.provider) if options.provider else self.default_provider

        invalid = self._validate(text, provider)
        if invalid:
            return self._fail(FailureReason.invalid_message, provider=provider.name, detail=invalid)

        now = self.time_provider.now()
        self._transition(DispatchState.window_check, provider=provider.name)
        schedule = options.window_override or self.schedule
        if not self.gate.is_allowed(schedule, now, options.force_window):
            return self._fail(
                FailureReason.out_of_window,
                provider=provider.name,
                detail=f"hour {now.hour} outside {schedule.start_hour}-{schedule.end_hour}",
            )

        self._transition(DispatchState.rate_check, provider=provider.name)
        reserved = await self._reserve(now)
        if isinstance(reserved, RateLimitFailure):
            return self._fail(FailureReason.rate_limited, provider=provider.name, detail=reserved.value)

        result: DeliveryResult | None = None
        try:
            result = await self._send_with_retry(provider, text, options, deadline)
        finally:
            # Also runs on exceptions and cancellation; only a delivered message keeps its slot.
            if result is None or not result.success:
                await self.counter_store.commit_atomic(lambda state: self.limiter.release(state, reserved))
        if result.success:
            self._transition(DispatchState.success, provider=provider.name, attempts=result.attempts_made)
            return result

        logger.warning(
            "dispatch_failed",
            extra={
                "provider": provider.name,
                "reason": result.failure_reason.value if result.failure_reason else None,
                "attempts": result.attempts_made,
                "status_code": result.provider_status_code,
            },
        )
        return result

    def _validate(self, text: str, provider: BaseProvider) -> str | None:
        if not isinstance(text, str) or not text.strip():
            return "message is empty"
        try:
            text.encode("utf-8")
        except UnicodeEncodeError:
            return "message is not valid UTF-8"
        limit = min(self.max_length, provider.max_length)
        if len(text) > limit:
            return f"message length {len(text)} exceeds {limit}"
        return None

    async def _reserve(self, now: datetime) -> Reservation | RateLimitFailure:
        outcome: list[Reservation | RateLimitFailure] = []

        def check_and_commit(state: RateCounterState) -> RateCounterState:
            rolled = self.limiter.roll_over(state, now)
            failure = self.limiter.check_and_reserve(self.rate_limit, rolled, now)
            if failure is not None:
                outcome.append(failure)
                return rolled
            committed = self.limiter.commit(rolled, now)
            outcome.append(Reservation.of(committed))
            return committed

        await self.counter_store.commit_atomic(check_and_commit)
        return outcome[0]

    async def _send_with_retry(
        self,
        provider: BaseProvider,
        text: str,
        options: SendOptions,
        deadline: datetime | None,
    ) -> DeliveryResult:
        retries_allowed = options.allow_retry and self.retry_policy.max_attempts > 0
        attempts = 0
        retries = 0
        while True:
            attempts += 1
            self._transition(DispatchState.sending, provider=provider.name, attempt=attempts)
            result = await provider.send(text)
            if result.success:
                return result.model_copy(update={"attempts_made": attempts, "failure_reason": None})

            if not retries_allowed:
                return result.model_copy(
                    update={"attempts_made": attempts, "failure_reason": FailureReason.provider_error}
                )
            if not self.retry_engine.should_retry(retries):
                return result.model_copy(
                    update={"attempts_made": attempts, "failure_reason": FailureReason.max_retries_exceeded}
                )

            retries += 1
            delay = self.retry_engine.delay_seconds(retries)
            if deadline is not None:
                resume_at = self.retry_engine.next_attempt(retries, self.time_provider.now())
                if resume_at > deadline:
                    return result.model_copy(
                        update={
                            "attempts_made": attempts,
                            "failure_reason": FailureReason.max_retries_exceeded,
                            "detail": "retry wait would pass the deadline",
                        }
                    )
            self._transition(DispatchState.retry_wait, provider=provider.name, retry=retries, delay_seconds=delay)
            await self.sleep(delay)

    def _fail(
        self,
        reason: FailureReason,
        *,
        provider: str | None = None,
        detail: str | None = None,
    ) -> DeliveryResult:
        logger.info("dispatch_rejected", extra={"reason": reason.value, "provider": provider, "detail": detail})
        return DeliveryResult.failed(reason, provider=provider, detail=detail)

    def _transition(self, state: DispatchState, **details: object) -> None:
        logger.debug("dispatch_state", extra={"state": state.value, **details})
