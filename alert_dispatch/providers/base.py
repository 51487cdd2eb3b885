from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

import httpx

from alert_dispatch.errors import ConfigurationError
from alert_dispatch.models import DeliveryResult, FailureReason


logger = logging.getLogger(__name__)


class BaseProvider(ABC):
    """Uniform send contract over one HTTP messaging API.

    Credentials are checked when the provider is built. ``send`` never raises for
    transport trouble: 4xx/5xx answers, timeouts and connection errors all come
    back as a failed ``DeliveryResult``.
    """

    name: str
    required_fields: tuple[str, ...] = ()
    max_length: int = 4096

    def __init__(
        self,
        config: Mapping[str, Any],
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        valid, details = self.validate_config(config)
        if not valid:
            raise ConfigurationError(f"{self.name}: {details}")
        self.config = dict(config)
        self.timeout = timeout
        self._transport = transport

    def validate_config(self, config: Mapping[str, Any]) -> tuple[bool, str]:
        missing = [key for key in self.required_fields if not config.get(key)]
        if missing:
            return False, f"Missing fields: {', '.join(missing)}"
        return True, "valid"

    def is_success(self, status_code: int) -> bool:
        return status_code == 200

    @abstractmethod
    async def _request(self, client: httpx.AsyncClient, text: str) -> httpx.Response:
        raise NotImplementedError

    async def send(self, text: str) -> DeliveryResult:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await self._request(client, text)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("provider_transport_error", extra={"provider": self.name, "error": str(exc)})
            return DeliveryResult(
                success=False,
                provider=self.name,
                failure_reason=FailureReason.provider_error,
                attempts_made=1,
                detail=f"{type(exc).__name__}: {exc}",
            )

        success = self.is_success(response.status_code)
        logger.info("provider_response", extra={"provider": self.name, "status_code": response.status_code})
        return DeliveryResult(
            success=success,
            provider=self.name,
            provider_status_code=response.status_code,
            raw_response=response.text,
            failure_reason=None if success else FailureReason.provider_error,
            attempts_made=1,
            detail=None if success else f"status={response.status_code}",
        )

    def describe(self) -> dict[str, Any]:
        return {"name": self.name, "max_length": self.max_length}
