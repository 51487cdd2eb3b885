from fastapi import APIRouter

from alert_dispatch.api import alerts, providers

router = APIRouter(prefix="/api")
router.include_router(alerts.router)
router.include_router(providers.router)
