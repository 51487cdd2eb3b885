from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from alert_dispatch.errors import ConfigurationError
from alert_dispatch.providers import PROVIDER_TYPES, BaseProvider


class ProviderRegistry:
    def __init__(self) -> None:
        self._providers: dict[str, BaseProvider] = {}

    @classmethod
    def from_configs(
        cls,
        configs: Mapping[str, Mapping[str, Any]],
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> ProviderRegistry:
        registry = cls()
        for provider_name, config in configs.items():
            provider_cls = PROVIDER_TYPES.get(provider_name)
            if provider_cls is None:
                known = ", ".join(sorted(PROVIDER_TYPES))
                raise ConfigurationError(f"Unknown provider '{provider_name}' (known: {known})")
            registry.register(provider_cls(config, timeout=timeout, transport=transport))
        return registry

    def register(self, provider: BaseProvider) -> None:
        self._providers[provider.name] = provider

    def get(self, provider_name: str) -> BaseProvider:
        if provider_name not in self._providers:
            raise ConfigurationError(f"Provider '{provider_name}' is not registered")
        return self._providers[provider_name]

    def __contains__(self, provider_name: object) -> bool:
        return provider_name in self._providers

    def list(self) -> list[str]:
        return sorted(self._providers)
