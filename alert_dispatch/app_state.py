from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from alert_dispatch.alerts import AlertClient
from alert_dispatch.config import Settings, settings as default_settings
from alert_dispatch.core import (
    CounterStore,
    DispatchEngine,
    InMemoryCounterStore,
    MessageFormatter,
    ProviderRegistry,
    TimeProvider,
)
from alert_dispatch.core.dispatch_engine import Sleep
from alert_dispatch.errors import ConfigurationError
from alert_dispatch.models import RateLimitConfig, RetryPolicy, Schedule


logger = logging.getLogger(__name__)


def configure(
    provider_configs: Mapping[str, Mapping[str, Any]],
    schedule: Schedule,
    rate_limit_config: RateLimitConfig,
    retry_policy: RetryPolicy,
    *,
    default_provider: str | None = None,
    counter_store: CounterStore | None = None,
    time_provider: TimeProvider | None = None,
    sleep: Sleep = asyncio.sleep,
    timeout: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
    max_length: int = 4096,
) -> DispatchEngine:
    """Build a ready engine; raises ``ConfigurationError`` for anything unusable."""
    if not provider_configs:
        raise ConfigurationError("At least one provider must be configured")
    if default_provider is None:
        if len(provider_configs) != 1:
            raise ConfigurationError("default_provider is required when several providers are configured")
        default_provider = next(iter(provider_configs))
    if default_provider not in provider_configs:
        raise ConfigurationError(f"Default provider '{default_provider}' has no configuration")

    registry = ProviderRegistry.from_configs(provider_configs, timeout=timeout, transport=transport)
    engine = DispatchEngine(
        registry,
        counter_store or InMemoryCounterStore(),
        default_provider=default_provider,
        schedule=schedule,
        rate_limit=rate_limit_config,
        retry_policy=retry_policy,
        time_provider=time_provider or TimeProvider(),
        sleep=sleep,
        max_length=max_length,
    )
    logger.info(
        "dispatch_engine_configured",
        extra={"default_provider": default_provider, "providers": registry.list()},
    )
    return engine


@dataclass
class AppContext:
    settings: Settings
    engine: DispatchEngine
    formatter: MessageFormatter
    alerts: AlertClient
    time_provider: TimeProvider


_ctx: AppContext | None = None


def build_context(
    app_settings: Settings | None = None,
    *,
    counter_store: CounterStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AppContext:
    app_settings = app_settings or default_settings
    time_provider = TimeProvider(app_settings.timezone)
    engine = configure(
        app_settings.provider_configs(),
        app_settings.schedule(),
        app_settings.rate_limit_config(),
        app_settings.retry_policy(),
        default_provider=app_settings.provider,
        counter_store=counter_store,
        time_provider=time_provider,
        timeout=app_settings.http_timeout_seconds,
        transport=transport,
        max_length=app_settings.max_message_length,
    )
    formatter = MessageFormatter(time_provider)
    return AppContext(
        settings=app_settings,
        engine=engine,
        formatter=formatter,
        alerts=AlertClient(engine, formatter),
        time_provider=time_provider,
    )


def set_context(ctx: AppContext | None) -> None:
    global _ctx
    _ctx = ctx


def get_context() -> AppContext:
    if _ctx is None:
        set_context(build_context())
    return _ctx
