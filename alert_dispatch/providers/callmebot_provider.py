from __future__ import annotations

import httpx

from alert_dispatch.providers.base import BaseProvider


class CallMeBotProvider(BaseProvider):
    name = "callmebot"
    required_fields = ("phone", "apikey")

    async def _request(self, client: httpx.AsyncClient, text: str) -> httpx.Response:
        url = self.config.get("url") or "https://api.callmebot.com/whatsapp.php"
        params = {"phone": self.config["phone"], "text": text, "apikey": self.config["apikey"]}
        return await client.get(url, params=params)
