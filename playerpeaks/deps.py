from __future__ import annotations

import time

from fastapi import Depends

from .api_clients.roblox import RobloxGamesClient
from .config import Settings, get_settings
from .services.sampler import PeakTracker
from .store import SampleStore, store_provider
from .utils.rate_limiter import RateLimiter, RateLimitState

rate_limit_state = RateLimitState()


def now_ms() -> int:
    return int(time.time() * 1000)


def get_clock():
    return now_ms


def get_store(settings: Settings = Depends(get_settings)) -> SampleStore:
    return store_provider.get(settings)


def get_peak_tracker(
    store: SampleStore = Depends(get_store), settings: Settings = Depends(get_settings)
) -> PeakTracker:
    return PeakTracker.from_settings(store, settings)


def get_count_source(settings: Settings = Depends(get_settings)) -> RobloxGamesClient:
    return RobloxGamesClient(
        settings.universe_id,
        base_url=settings.roblox_api_base,
        timeout=settings.source_timeout_seconds,
    )


def get_rate_limiter(settings: Settings = Depends(get_settings)) -> RateLimiter:
    return RateLimiter.from_settings(settings)


def get_rate_limit_state() -> RateLimitState:
    return rate_limit_state
