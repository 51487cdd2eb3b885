from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from alert_dispatch.core import DispatchEngine, MessageFormatter
from alert_dispatch.models import DeliveryResult, Priority, SendOptions


class AlertClient:
    """Shortcuts that format a common alert shape and hand it to the engine."""

    def __init__(self, engine: DispatchEngine, formatter: MessageFormatter) -> None:
        self.engine = engine
        self.formatter = formatter

    async def send_alert(
        self,
        message: str,
        priority: Priority = Priority.normal,
        options: SendOptions | None = None,
    ) -> DeliveryResult:
        priority = Priority(priority)
        options = (options or SendOptions()).model_copy(update={"priority": priority})
        text = self.formatter.format("alert", {"message": message})
        return await self.engine.dispatch(self.formatter.decorate(text, priority, timestamp=True), options)

    async def send_critical_error(self, error: BaseException | str, context: str = "") -> DeliveryResult:
        text = self.formatter.format("critical_error", {"error": str(error), "context": context})
        return await self.engine.dispatch(text, SendOptions(priority=Priority.critical, force_window=True))

    async def send_report(
        self,
        title: str,
        items: Mapping[str, Any] | Sequence[Any],
        options: SendOptions | None = None,
    ) -> DeliveryResult:
        text = self.formatter.format("report", {"title": title, "items": items})
        return await self.engine.dispatch(text, options)

    async def send_metrics(
        self,
        title: str,
        metrics: Mapping[str, Any],
        comparison: Mapping[str, float] | None = None,
        options: SendOptions | None = None,
    ) -> DeliveryResult:
        text = self.formatter.format("metrics", {"title": title, "metrics": metrics, "comparison": comparison})
        return await self.engine.dispatch(text, options)

    async def send_reminder(
        self,
        title: str,
        description: str,
        due_date: datetime | str | None = None,
        options: SendOptions | None = None,
    ) -> DeliveryResult:
        text = self.formatter.format("reminder", {"title": title, "description": description, "due_date": due_date})
        return await self.engine.dispatch(text, options)

    async def send_process_completed(
        self,
        process: str,
        duration: str,
        result: str | None = None,
        options: SendOptions | None = None,
    ) -> DeliveryResult:
        text = self.formatter.format("process_completed", {"process": process, "duration": duration, "result": result})
        return await self.engine.dispatch(text, options)

    async def send_daily_summary(
        self,
        data: Mapping[str, Any],
        options: SendOptions | None = None,
    ) -> DeliveryResult:
        payload = {key: data.get(key) for key in ("metrics", "events", "alerts")}
        text = self.formatter.format("daily_summary", payload)
        return await self.engine.dispatch(text, options)
