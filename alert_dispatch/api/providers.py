from __future__ import annotations

from fastapi import APIRouter

from alert_dispatch.app_state import get_context

router = APIRouter(prefix="/providers", tags=["providers"])


@router.get("")
async def list_providers():
    ctx = get_context()
    engine = ctx.engine
    return [
        {**engine.registry.get(name).describe(), "default": name == engine.default_provider.name}
        for name in engine.registry.list()
    ]
