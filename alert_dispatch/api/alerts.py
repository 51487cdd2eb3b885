from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException
from jinja2 import TemplateError
from pydantic import BaseModel, Field

from alert_dispatch.app_state import get_context
from alert_dispatch.models import DeliveryResult, Priority, RateCounterState, Schedule, SendOptions

router = APIRouter(prefix="/alerts", tags=["alerts"])


class DispatchRequest(BaseModel):
    text: str
    priority: Priority = Priority.normal
    force_window: bool = False
    allow_retry: bool = True
    provider: str | None = None
    window: Schedule | None = None

    def options(self) -> SendOptions:
        return SendOptions(
            priority=self.priority,
            force_window=self.force_window,
            allow_retry=self.allow_retry,
            provider=self.provider,
            window_override=self.window,
        )


class FormattedDispatchRequest(DispatchRequest):
    text: str = ""
    data: dict[str, Any] = Field(default_factory=dict)


@router.post("/dispatch", response_model=DeliveryResult)
async def dispatch(payload: DispatchRequest):
    ctx = get_context()
    return await ctx.engine.dispatch(payload.text, payload.options())


@router.post("/formatted/{kind}", response_model=DeliveryResult)
async def dispatch_formatted(kind: str, payload: FormattedDispatchRequest):
    ctx = get_context()
    try:
        text = ctx.formatter.format(kind, payload.data)
    except (ValueError, TemplateError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    text = ctx.formatter.decorate(text, payload.priority)
    return await ctx.engine.dispatch(text, payload.options())


@router.get("/counters", response_model=RateCounterState)
async def counters():
    ctx = get_context()
    return await ctx.engine.counters()
