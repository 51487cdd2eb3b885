from alert_dispatch.alerts import AlertClient
from alert_dispatch.app_state import configure
from alert_dispatch.core import DispatchEngine, InMemoryCounterStore, MessageFormatter
from alert_dispatch.errors import ConfigurationError
from alert_dispatch.models import (
    DeliveryResult,
    FailureReason,
    Priority,
    RateCounterState,
    RateLimitConfig,
    RetryPolicy,
    Schedule,
    SendOptions,
)

__all__ = [
    "AlertClient",
    "ConfigurationError",
    "DeliveryResult",
    "DispatchEngine",
    "FailureReason",
    "InMemoryCounterStore",
    "MessageFormatter",
    "Priority",
    "RateCounterState",
    "RateLimitConfig",
    "RetryPolicy",
    "Schedule",
    "SendOptions",
    "configure",
]
