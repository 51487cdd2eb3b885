from __future__ import annotations

from typing import Any

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from alert_dispatch.errors import ConfigurationError
from alert_dispatch.models import SCHEDULE_PRESETS, RateLimitConfig, RetryPolicy, Schedule

# Fields whose presence means an operator meant to enable a non-default provider.
_CREDENTIAL_FIELDS = {
    "callmebot": ("phone", "apikey"),
    "business_api": ("phone_number_id", "access_token"),
    "sms_bridge": ("account_sid", "auth_token"),
    "webhook": ("url",),
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="ALERT_", extra="ignore")

    app_name: str = "Alert Dispatch"
    log_level: str = "INFO"
    timezone: str = "America/Lima"
    provider: str = "callmebot"
    max_message_length: int = 4096
    http_timeout_seconds: float = 10.0

    callmebot_url: str = "https://api.callmebot.com/whatsapp.php"
    callmebot_phone: str = ""
    callmebot_apikey: str = ""

    business_api_base: str = "https://graph.facebook.com/v17.0"
    business_api_phone_number_id: str = ""
    business_api_token: str = ""
    business_api_recipient: str = ""

    sms_api_base: str = "https://api.twilio.com/2010-04-01"
    sms_account_sid: str = ""
    sms_auth_token: str = ""
    sms_from: str = "whatsapp:+14155238886"
    sms_to: str = ""

    webhook_url: str = ""
    webhook_headers: dict[str, str] = {}

    schedule_preset: str = "business"
    schedule_start_hour: int | None = None
    schedule_end_hour: int | None = None
    schedule_weekdays: list[int] | None = None

    rate_max_per_hour: int = 50
    rate_max_per_day: int = 200
    rate_min_interval_ms: int = 2000

    retry_max_attempts: int = 3
    retry_base_delay_ms: int = 5000
    retry_backoff: bool = True

    def provider_configs(self) -> dict[str, dict[str, Any]]:
        candidates: dict[str, dict[str, Any]] = {
            "callmebot": {
                "url": self.callmebot_url,
                "phone": self.callmebot_phone,
                "apikey": self.callmebot_apikey,
            },
            "business_api": {
                "api_base": self.business_api_base,
                "phone_number_id": self.business_api_phone_number_id,
                "access_token": self.business_api_token,
                "recipient": self.business_api_recipient,
            },
            "sms_bridge": {
                "api_base": self.sms_api_base,
                "account_sid": self.sms_account_sid,
                "auth_token": self.sms_auth_token,
                "from_number": self.sms_from,
                "to_number": self.sms_to,
            },
            "webhook": {
                "url": self.webhook_url,
                "headers": dict(self.webhook_headers),
            },
        }
        if self.provider not in candidates:
            raise ConfigurationError(f"Unknown provider '{self.provider}'")
        return {
            name: config
            for name, config in candidates.items()
            if name == self.provider or any(config.get(key) for key in _CREDENTIAL_FIELDS[name])
        }

    def schedule(self) -> Schedule:
        preset = SCHEDULE_PRESETS.get(self.schedule_preset)
        if preset is None:
            raise ConfigurationError(f"Unknown schedule preset '{self.schedule_preset}'")
        overrides: dict[str, Any] = {}
        if self.schedule_start_hour is not None:
            overrides["start_hour"] = self.schedule_start_hour
        if self.schedule_end_hour is not None:
            overrides["end_hour"] = self.schedule_end_hour
        if self.schedule_weekdays is not None:
            overrides["allowed_weekdays"] = frozenset(self.schedule_weekdays)
        if not overrides:
            return preset
        try:
            return Schedule(**{**preset.model_dump(), **overrides})
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid schedule: {exc}") from exc

    def rate_limit_config(self) -> RateLimitConfig:
        try:
            return RateLimitConfig(
                max_per_hour=self.rate_max_per_hour,
                max_per_day=self.rate_max_per_day,
                min_interval_millis=self.rate_min_interval_ms,
            )
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid rate limit: {exc}") from exc

    def retry_policy(self) -> RetryPolicy:
        try:
            return RetryPolicy(
                max_attempts=self.retry_max_attempts,
                base_delay_millis=self.retry_base_delay_ms,
                use_exponential_backoff=self.retry_backoff,
            )
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid retry policy: {exc}") from exc


settings = Settings()
