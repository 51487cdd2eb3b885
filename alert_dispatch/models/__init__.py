from alert_dispatch.models.delivery import DeliveryResult, FailureReason
from alert_dispatch.models.rate_limit import RateCounterState, RateLimitConfig
from alert_dispatch.models.retry_policy import RetryPolicy
from alert_dispatch.models.schedule import SCHEDULE_PRESETS, Schedule
from alert_dispatch.models.send_options import Priority, SendOptions

__all__ = [
    "DeliveryResult",
    "FailureReason",
    "Priority",
    "RateCounterState",
    "RateLimitConfig",
    "RetryPolicy",
    "SCHEDULE_PRESETS",
    "Schedule",
    "SendOptions",
]
