from __future__ import annotations

import httpx

from alert_dispatch.providers.base import BaseProvider


class SmsBridgeProvider(BaseProvider):
    """Twilio-style REST bridge; a created message answers 201."""

    name = "sms_bridge"
    required_fields = ("account_sid", "auth_token", "from_number", "to_number")

    def is_success(self, status_code: int) -> bool:
        return status_code == 201

    async def _request(self, client: httpx.AsyncClient, text: str) -> httpx.Response:
        api_base = str(self.config.get("api_base") or "https://api.twilio.com/2010-04-01").rstrip("/")
        account_sid = self.config["account_sid"]
        url = f"{api_base}/Accounts/{account_sid}/Messages.json"
        form = {"From": self.config["from_number"], "To": self.config["to_number"], "Body": text}
        return await client.post(url, data=form, auth=(account_sid, self.config["auth_token"]))
