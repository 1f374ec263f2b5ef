from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass

from ..config import Settings
from ..logging_config import logger

SWEEP_INTERVAL_MS = 60 * 1000


@dataclass
class RateLimitEntry:
    count: int
    window_start: int
    blocked_until: int | None = None


@dataclass(frozen=True)
class Admission:
    allowed: bool
    retry_after_seconds: int = 0

    @classmethod
    def allow(cls) -> "Admission":
        return cls(allowed=True)

    @classmethod
    def deny(cls, retry_after_seconds: int) -> "Admission":
        return cls(allowed=False, retry_after_seconds=max(1, retry_after_seconds))


class RateLimitState:
    """Per-process client map. Lives for the lifetime of the application."""

    def __init__(self) -> None:
        self.entries: dict[str, RateLimitEntry] = {}
        self.lock = asyncio.Lock()
        self.last_sweep = 0

    def clear(self) -> None:
        self.entries.clear()
        self.last_sweep = 0


class RateLimiter:
    def __init__(self, max_requests: int = 10, window_seconds: int = 10, block_seconds: int = 3600) -> None:
        self.max_requests = max_requests
        self.window_ms = window_seconds * 1000
        self.block_ms = block_seconds * 1000

    @classmethod
    def from_settings(cls, settings: Settings) -> "RateLimiter":
        return cls(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
            block_seconds=settings.rate_limit_block_seconds,
        )

    async def check(self, state: RateLimitState, client_id: str, now: int) -> Admission:
        try:
            async with state.lock:
                self._sweep(state, now)
                return self._evaluate(state, client_id, now)
        except Exception as exc:
            logger.error("rate_limit.fault", client=client_id, error=str(exc))
            return Admission.allow()

    def _evaluate(self, state: RateLimitState, client_id: str, now: int) -> Admission:
        entry = state.entries.get(client_id)
        if entry is not None and entry.blocked_until is not None:
            if now < entry.blocked_until:
                retry_after = math.ceil((entry.blocked_until - now) / 1000)
                logger.info("rate_limit.denied", client=client_id, retry_after=retry_after)
                return Admission.deny(retry_after)
            del state.entries[client_id]
            entry = None

        if entry is None or now - entry.window_start > self.window_ms:
            state.entries[client_id] = RateLimitEntry(count=1, window_start=now)
            return Admission.allow()

        if entry.count + 1 > self.max_requests:
            entry.blocked_until = now + self.block_ms
            logger.warning("rate_limit.blocked", client=client_id, blocked_until=entry.blocked_until)
            return Admission.deny(self.block_ms // 1000)

        entry.count += 1
        return Admission.allow()

    def _sweep(self, state: RateLimitState, now: int) -> None:
        if now - state.last_sweep < SWEEP_INTERVAL_MS:
            return
        stale = [
            client_id
            for client_id, entry in state.entries.items()
            if (entry.blocked_until is None and now - entry.window_start > self.window_ms)
            or (entry.blocked_until is not None and now >= entry.blocked_until)
        ]
        for client_id in stale:
            del state.entries[client_id]
        state.last_sweep = now
