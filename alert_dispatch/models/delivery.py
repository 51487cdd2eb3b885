from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class FailureReason(str, Enum):
    out_of_window = "out_of_window"
    rate_limited = "rate_limited"
    provider_error = "provider_error"
    max_retries_exceeded = "max_retries_exceeded"
    invalid_message = "invalid_message"


class DeliveryResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    provider: str | None = None
    provider_status_code: int | None = None
    raw_response: str | None = None
    failure_reason: FailureReason | None = None
    attempts_made: int = 0
    detail: str | None = None

    @classmethod
    def failed(
        cls,
        reason: FailureReason,
        *,
        attempts_made: int = 0,
        provider: str | None = None,
        detail: str | None = None,
    ) -> DeliveryResult:
        return cls(
            success=False,
            provider=provider,
            failure_reason=reason,
            attempts_made=attempts_made,
            detail=detail,
        )
