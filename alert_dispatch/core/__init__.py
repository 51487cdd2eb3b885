from alert_dispatch.core.counter_store import CounterStore, InMemoryCounterStore
from alert_dispatch.core.dispatch_engine import DispatchEngine, DispatchState
from alert_dispatch.core.message_formatter import MessageFormatter
from alert_dispatch.core.provider_registry import ProviderRegistry
from alert_dispatch.core.rate_limiter import RateLimiter, RateLimitFailure, Reservation
from alert_dispatch.core.retry_engine import RetryEngine
from alert_dispatch.core.schedule_gate import ScheduleGate
from alert_dispatch.core.time_provider import TimeProvider

__all__ = [
    "CounterStore",
    "DispatchEngine",
    "DispatchState",
    "InMemoryCounterStore",
    "MessageFormatter",
    "ProviderRegistry",
    "RateLimitFailure",
    "RateLimiter",
    "Reservation",
    "RetryEngine",
    "ScheduleGate",
    "TimeProvider",
]
