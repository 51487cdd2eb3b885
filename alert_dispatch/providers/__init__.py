from alert_dispatch.providers.base import BaseProvider
from alert_dispatch.providers.business_api_provider import BusinessApiProvider
from alert_dispatch.providers.callmebot_provider import CallMeBotProvider
from alert_dispatch.providers.sms_bridge_provider import SmsBridgeProvider
from alert_dispatch.providers.webhook_provider import WebhookProvider

PROVIDER_TYPES: dict[str, type[BaseProvider]] = {
    provider.name: provider
    for provider in (CallMeBotProvider, BusinessApiProvider, SmsBridgeProvider, WebhookProvider)
}

__all__ = [
    "BaseProvider",
    "BusinessApiProvider",
    "CallMeBotProvider",
    "PROVIDER_TYPES",
    "SmsBridgeProvider",
    "WebhookProvider",
]
