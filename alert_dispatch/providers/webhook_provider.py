from __future__ import annotations

from datetime import datetime, timezone

import httpx

from alert_dispatch.providers.base import BaseProvider


class WebhookProvider(BaseProvider):
    name = "webhook"
    required_fields = ("url",)

    def is_success(self, status_code: int) -> bool:
        return 200 <= status_code < 300

    async def _request(self, client: httpx.AsyncClient, text: str) -> httpx.Response:
        headers = {str(k): str(v) for k, v in dict(self.config.get("headers") or {}).items()}
        payload = {
            "message": text,
            "timestamp": datetime.now(tz=timezone.utc).isoformat(),
            "source": str(self.config.get("source") or "alert-dispatch"),
        }
        return await client.post(self.config["url"], json=payload, headers=headers)
