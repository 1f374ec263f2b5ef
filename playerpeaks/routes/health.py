from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends

from ..config import Settings, get_settings
from ..deps import get_store
from ..models.schemas import SystemHealth
from ..store import SampleStore

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=SystemHealth)
async def health(store: SampleStore = Depends(get_store), settings: Settings = Depends(get_settings)) -> SystemHealth:
    if store.backend == "memory":
        store_status = "memory"
    else:
        store_status = "connected"
        try:
            if not await asyncio.wait_for(store.ping(), timeout=settings.store_timeout_seconds):
                store_status = "degraded"
        except Exception:
            store_status = "degraded"
    return SystemHealth(status="ok", components={"store": store_status})
