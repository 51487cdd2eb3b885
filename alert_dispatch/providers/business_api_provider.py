from __future__ import annotations

import httpx

from alert_dispatch.providers.base import BaseProvider


class BusinessApiProvider(BaseProvider):
    """WhatsApp Business Cloud API text message."""

    name = "business_api"
    required_fields = ("phone_number_id", "access_token", "recipient")

    async def _request(self, client: httpx.AsyncClient, text: str) -> httpx.Response:
        api_base = str(self.config.get("api_base") or "https://graph.facebook.com/v17.0").rstrip("/")
        url = f"{api_base}/{self.config['phone_number_id']}/messages"
        headers = {"Authorization": f"Bearer {self.config['access_token']}"}
        payload = {
            "messaging_product": "whatsapp",
            "to": self.config["recipient"],
            "type": "text",
            "text": {"body": text},
        }
        return await client.post(url, json=payload, headers=headers)
