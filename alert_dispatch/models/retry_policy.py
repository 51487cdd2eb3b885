from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RetryPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Retries after the first send; 0 disables retrying.
    max_attempts: int = Field(default=3, ge=0)
    base_delay_millis: int = Field(default=5000, ge=0)
    use_exponential_backoff: bool = True
