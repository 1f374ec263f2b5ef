from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, TypeVar

from ..logging_config import logger

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of an optional sub-step: either a value or the reason it degraded."""

    value: T | None = None
    reason: str | None = None

    @classmethod
    def ok(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def degraded(cls, reason: str) -> "Outcome[T]":
        return cls(reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.reason is None

    def unwrap_or(self, fallback: T) -> T:
        if self.reason is not None or self.value is None:
            return fallback
        return self.value


async def attempt(call: Awaitable[T], reason: str, timeout: float, **context: Any) -> Outcome[T]:
    try:
        value = await asyncio.wait_for(call, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("sampler.degraded", reason=reason, error="timeout", **context)
        return Outcome.degraded(reason)
    except Exception as exc:
        logger.warning("sampler.degraded", reason=reason, error=str(exc), **context)
        return Outcome.degraded(reason)
    return Outcome.ok(value)
