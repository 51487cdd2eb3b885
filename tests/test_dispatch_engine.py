import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from alert_dispatch import configure
from alert_dispatch.core import InMemoryCounterStore
from alert_dispatch.errors import ConfigurationError
from alert_dispatch.models import (
    FailureReason,
    RateCounterState,
    RateLimitConfig,
    RetryPolicy,
    Schedule,
    SendOptions,
)

CALLMEBOT = {"phone": "+51987654321", "apikey": "secret"}
ALWAYS_OPEN = Schedule(start_hour=0, end_hour=23)


class FixedClock:
    def __init__(self, current: datetime) -> None:
        self.current = current

    def now(self) -> datetime:
        return self.current


def _utc(y, m, d, hh=0, mm=0, ss=0):
    return datetime(y, m, d, hh, mm, ss, tzinfo=timezone.utc)


def _scripted_transport(statuses):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        status = statuses[min(len(requests), len(statuses)) - 1]
        return httpx.Response(status, text=f"status {status}")

    return httpx.MockTransport(handler), requests


def _build(
    statuses,
    *,
    now=None,
    schedule=ALWAYS_OPEN,
    rate_limit=None,
    retry_policy=None,
    store=None,
    provider_configs=None,
    default_provider=None,
    clock=None,
    sleep=None,
):
    transport, requests = _scripted_transport(statuses)
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    store = store or InMemoryCounterStore()
    engine = configure(
        provider_configs or {"callmebot": CALLMEBOT},
        schedule,
        rate_limit or RateLimitConfig(min_interval_millis=0),
        retry_policy or RetryPolicy(max_attempts=3, base_delay_millis=1000, use_exponential_backoff=True),
        default_provider=default_provider,
        counter_store=store,
        time_provider=clock or FixedClock(now or _utc(2026, 3, 4, 10, 0)),
        sleep=sleep or fake_sleep,
        transport=transport,
    )
    return engine, store, requests, sleeps


def test_successful_send_commits_counters_once():
    engine, store, requests, sleeps = _build([200])

    result = asyncio.run(engine.dispatch("hello"))

    assert result.success is True
    assert result.attempts_made == 1
    assert result.provider == "callmebot"
    assert len(requests) == 1
    assert sleeps == []
    state = asyncio.run(store.load())
    assert state.count_today == 1
    assert state.count_this_hour == 1
    assert state.last_send_at == _utc(2026, 3, 4, 10, 0)


def test_oversized_message_is_rejected_before_any_side_effect():
    engine, store, requests, _ = _build([200])

    result = asyncio.run(engine.dispatch("x" * 5000))

    assert result.success is False
    assert result.failure_reason == FailureReason.invalid_message
    assert result.attempts_made == 0
    assert requests == []
    assert asyncio.run(store.load()) == RateCounterState()


def test_empty_message_is_invalid():
    engine, _, requests, _ = _build([200])
    result = asyncio.run(engine.dispatch("   "))
    assert result.failure_reason == FailureReason.invalid_message
    assert requests == []


def test_out_of_window_does_not_touch_rate_counters():
    engine, store, requests, _ = _build(
        [200],
        now=_utc(2026, 3, 4, 20, 0),
        schedule=Schedule(start_hour=8, end_hour=18),
    )

    result = asyncio.run(engine.dispatch("after hours"))

    assert result.success is False
    assert result.failure_reason == FailureReason.out_of_window
    assert result.attempts_made == 0
    assert requests == []
    assert asyncio.run(store.load()) == RateCounterState()


def test_force_window_and_window_override_change_the_gate():
    engine, _, _, _ = _build(
        [200],
        now=_utc(2026, 3, 4, 20, 0),
        schedule=Schedule(start_hour=8, end_hour=18),
    )

    forced = asyncio.run(engine.dispatch("critical", SendOptions(force_window=True)))
    assert forced.success is True

    engine, _, _, _ = _build(
        [200],
        now=_utc(2026, 3, 4, 20, 0),
        schedule=Schedule(start_hour=8, end_hour=18),
    )
    widened = asyncio.run(
        engine.dispatch("evening", SendOptions(window_override=Schedule(start_hour=7, end_hour=22)))
    )
    assert widened.success is True


def test_retry_succeeds_on_third_attempt():
    engine, store, requests, sleeps = _build([500, 500, 200])

    result = asyncio.run(engine.dispatch("flaky provider"))

    assert result.success is True
    assert result.attempts_made == 3
    assert result.failure_reason is None
    assert len(requests) == 3
    assert sleeps == [1.0, 2.0]
    assert asyncio.run(store.load()).count_today == 1


def test_exhausted_retries_report_max_retries_exceeded_and_refund_the_slot():
    engine, store, requests, sleeps = _build([500])

    result = asyncio.run(engine.dispatch("never arrives"))

    assert result.success is False
    assert result.failure_reason == FailureReason.max_retries_exceeded
    assert result.attempts_made == 4
    assert result.provider_status_code == 500
    assert len(requests) == 4
    assert sleeps == [1.0, 2.0, 3.0]
    state = asyncio.run(store.load())
    assert state.count_today == 0
    assert state.count_this_hour == 0
    assert state.last_send_at == _utc(2026, 3, 4, 10, 0)


def test_constant_backoff_without_exponential_flag():
    engine, _, _, sleeps = _build(
        [500],
        retry_policy=RetryPolicy(max_attempts=2, base_delay_millis=250, use_exponential_backoff=False),
    )
    asyncio.run(engine.dispatch("x"))
    assert sleeps == [0.25, 0.25]


def test_no_retry_when_caller_disallows_it():
    engine, _, requests, sleeps = _build([500, 200])

    result = asyncio.run(engine.dispatch("once", SendOptions(allow_retry=False)))

    assert result.failure_reason == FailureReason.provider_error
    assert result.attempts_made == 1
    assert len(requests) == 1
    assert sleeps == []


def test_zero_retry_policy_reports_provider_error():
    engine, _, requests, _ = _build([500], retry_policy=RetryPolicy(max_attempts=0))
    result = asyncio.run(engine.dispatch("once"))
    assert result.failure_reason == FailureReason.provider_error
    assert len(requests) == 1


def test_daily_limit_rejects_without_calling_provider():
    store = InMemoryCounterStore(
        RateCounterState(
            count_today=3,
            count_this_hour=0,
            day_started_at=_utc(2026, 3, 4),
            hour_started_at=_utc(2026, 3, 4, 10),
        )
    )
    engine, _, requests, _ = _build(
        [200],
        store=store,
        rate_limit=RateLimitConfig(max_per_day=3, max_per_hour=10, min_interval_millis=0),
    )

    result = asyncio.run(engine.dispatch("over budget"))

    assert result.failure_reason == FailureReason.rate_limited
    assert result.detail == "daily_limit_exceeded"
    assert result.attempts_made == 0
    assert requests == []


def test_second_send_inside_min_interval_is_rate_limited():
    engine, _, requests, _ = _build([200], rate_limit=RateLimitConfig(min_interval_millis=2000))

    first = asyncio.run(engine.dispatch("one"))
    second = asyncio.run(engine.dispatch("two"))

    assert first.success is True
    assert second.failure_reason == FailureReason.rate_limited
    assert second.detail == "too_soon"
    assert len(requests) == 1


def test_concurrent_callers_cannot_both_take_the_last_slot():
    engine, store, requests, _ = _build(
        [200],
        rate_limit=RateLimitConfig(max_per_day=1, max_per_hour=1, min_interval_millis=0),
    )

    async def _run():
        return await asyncio.gather(engine.dispatch("a"), engine.dispatch("b"))

    results = asyncio.run(_run())

    assert sorted(r.success for r in results) == [False, True]
    rejected = next(r for r in results if not r.success)
    assert rejected.failure_reason == FailureReason.rate_limited
    assert len(requests) == 1
    assert asyncio.run(store.load()).count_today == 1


def test_retry_wait_past_deadline_stops_early():
    now = _utc(2026, 3, 4, 10, 0)
    engine, _, requests, sleeps = _build([500], now=now)

    result = asyncio.run(engine.dispatch("hurry", deadline=now + timedelta(milliseconds=1500)))

    assert result.failure_reason == FailureReason.max_retries_exceeded
    assert result.attempts_made == 2
    assert sleeps == [1.0]
    assert len(requests) == 2


def test_provider_override_and_unknown_override():
    engine, _, requests, _ = _build(
        [200],
        provider_configs={"callmebot": CALLMEBOT, "webhook": {"url": "https://hooks.example.com/alerts"}},
        default_provider="callmebot",
    )

    routed = asyncio.run(engine.dispatch("via webhook", SendOptions(provider="webhook")))
    assert routed.success is True
    assert routed.provider == "webhook"
    assert requests[0].url.host == "hooks.example.com"

    unknown = asyncio.run(engine.dispatch("nowhere", SendOptions(provider="pager")))
    assert unknown.failure_reason == FailureReason.invalid_message
    assert len(requests) == 1


def test_configure_rejects_unusable_setups():
    policy = RetryPolicy()
    limits = RateLimitConfig()
    with pytest.raises(ConfigurationError):
        configure({}, ALWAYS_OPEN, limits, policy)
    with pytest.raises(ConfigurationError, match="Unknown provider"):
        configure({"fax": {}}, ALWAYS_OPEN, limits, policy)
    with pytest.raises(ConfigurationError, match="Missing fields"):
        configure({"callmebot": {"phone": "1"}}, ALWAYS_OPEN, limits, policy)
    with pytest.raises(ConfigurationError, match="default_provider"):
        configure(
            {"callmebot": CALLMEBOT, "webhook": {"url": "https://hooks.example.com"}},
            ALWAYS_OPEN,
            limits,
            policy,
        )
    with pytest.raises(ConfigurationError, match="no configuration"):
        configure({"callmebot": CALLMEBOT}, ALWAYS_OPEN, limits, policy, default_provider="webhook")


def test_text_that_cannot_be_encoded_is_invalid_and_costs_nothing():
    engine, store, requests, _ = _build([200])

    result = asyncio.run(engine.dispatch("disk full \ud800"))

    assert result.success is False
    assert result.failure_reason == FailureReason.invalid_message
    assert result.detail == "message is not valid UTF-8"
    assert requests == []
    assert asyncio.run(store.load()) == RateCounterState()


def test_unexpected_transport_error_propagates_but_gives_the_slot_back():
    def handler(request: httpx.Request) -> httpx.Response:
        raise RuntimeError("transport exploded")

    store = InMemoryCounterStore()
    engine = configure(
        {"callmebot": CALLMEBOT},
        ALWAYS_OPEN,
        RateLimitConfig(min_interval_millis=0),
        RetryPolicy(max_attempts=0),
        counter_store=store,
        time_provider=FixedClock(_utc(2026, 3, 4, 10, 0)),
        transport=httpx.MockTransport(handler),
    )

    with pytest.raises(RuntimeError, match="transport exploded"):
        asyncio.run(engine.dispatch("hello"))

    state = asyncio.run(store.load())
    assert state.count_today == 0
    assert state.count_this_hour == 0


def test_cancelled_retry_wait_gives_the_slot_back():
    async def slow_sleep(seconds):
        await asyncio.sleep(10)

    engine, store, requests, _ = _build([500], sleep=slow_sleep)

    async def _run():
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(engine.dispatch("x"), 0.05)
        return await store.load()

    state = asyncio.run(_run())

    assert len(requests) == 1
    assert state.count_today == 0
    assert state.count_this_hour == 0


def test_naive_deadline_is_rejected_before_any_side_effect():
    engine, store, requests, _ = _build([500])

    with pytest.raises(ValueError, match="Naive datetime"):
        asyncio.run(engine.dispatch("x", deadline=datetime(2026, 3, 4, 10, 0, 1)))

    assert requests == []
    assert asyncio.run(store.load()) == RateCounterState()


def test_retries_keep_going_after_the_window_closes():
    clock = FixedClock(_utc(2026, 3, 4, 18, 59, 59))

    async def advancing_sleep(seconds):
        clock.current += timedelta(seconds=seconds)

    engine, store, requests, _ = _build(
        [500, 500, 200],
        schedule=Schedule(start_hour=8, end_hour=18),
        clock=clock,
        sleep=advancing_sleep,
    )

    result = asyncio.run(engine.dispatch("nightly export finished"))

    assert result.success is True
    assert result.attempts_made == 3
    assert len(requests) == 3
    assert clock.current == _utc(2026, 3, 4, 19, 0, 2)
    assert asyncio.run(store.load()).count_today == 1
