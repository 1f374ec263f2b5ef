from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from ..config import Settings
from ..logging_config import logger
from ..store import SampleStore
from .outcome import attempt

DAY_MS = 24 * 60 * 60 * 1000
WEEK_MS = 7 * DAY_MS
RETENTION_MS = WEEK_MS
TIMESTAMP_WIDTH = 13


@dataclass(frozen=True)
class Peaks:
    peak_24h: int
    peak_7d: int


def encode_sample(timestamp: int, value: int) -> str:
    """Encode a sample as a digits-only member: fixed-width timestamp, then value."""
    if timestamp < 0 or timestamp >= 10**TIMESTAMP_WIDTH:
        raise ValueError(f"timestamp out of range: {timestamp}")
    if value < 0:
        raise ValueError(f"negative sample value: {value}")
    return f"{timestamp:0{TIMESTAMP_WIDTH}d}{value:d}"


def decode_sample(member: object) -> Optional[Tuple[int, int]]:
    if isinstance(member, bytes):
        member = member.decode("utf-8", errors="replace")
    text = str(member).strip()
    if ":" in text:
        # timestamp:value members written before the fixed-width encoding
        timestamp_part, _, value_part = text.partition(":")
        if not (timestamp_part.isdigit() and value_part.isdigit()):
            return None
        return int(timestamp_part), int(value_part)
    if not text.isdigit() or len(text) <= TIMESTAMP_WIDTH:
        return None
    return int(text[:TIMESTAMP_WIDTH]), int(text[TIMESTAMP_WIDTH:])


def window_peak(members: Iterable[object], current_value: int) -> int:
    values = []
    for member in members:
        decoded = decode_sample(member)
        if decoded is not None and decoded[1] > 0:
            values.append(decoded[1])
    if not values:
        return current_value
    return max(max(values), current_value)


class PeakTracker:
    def __init__(
        self,
        store: SampleStore,
        samples_key: str = "playerPeaks",
        last_sample_key: str = "lastSaveTime",
        sample_interval_ms: int = 10 * 60 * 1000,
        timeout: float = 2.0,
    ) -> None:
        self.store = store
        self.samples_key = samples_key
        self.last_sample_key = last_sample_key
        self.sample_interval_ms = sample_interval_ms
        self.timeout = timeout

    @classmethod
    def from_settings(cls, store: SampleStore, settings: Settings) -> "PeakTracker":
        return cls(
            store,
            samples_key=settings.samples_key,
            last_sample_key=settings.last_sample_key,
            sample_interval_ms=settings.sample_interval_seconds * 1000,
            timeout=settings.store_timeout_seconds,
        )

    async def record_and_query(self, current_value: int, now: int) -> Peaks:
        try:
            return await self._record_and_query(current_value, now)
        except Exception as exc:
            logger.warning("sampler.failed", error=str(exc))
            return Peaks(peak_24h=current_value, peak_7d=current_value)

    async def _record_and_query(self, current_value: int, now: int) -> Peaks:
        last_sample_time = await self._last_sample_time()
        if last_sample_time == 0 or now - last_sample_time >= self.sample_interval_ms:
            await self._save_sample(current_value, now)

        await attempt(
            self.store.remove_by_score_range(self.samples_key, float("-inf"), now - RETENTION_MS - 1),
            "prune_failed",
            self.timeout,
        )

        day_members = await attempt(
            self.store.range_by_score(self.samples_key, now - DAY_MS, now), "range_24h_failed", self.timeout
        )
        week_members = await attempt(
            self.store.range_by_score(self.samples_key, now - WEEK_MS, now), "range_7d_failed", self.timeout
        )
        day_list = day_members.unwrap_or([])
        week_list = week_members.unwrap_or([])
        if not week_list:
            logger.info("sampler.no_entries", window="7d")
        return Peaks(
            peak_24h=window_peak(day_list, current_value),
            peak_7d=window_peak(week_list, current_value),
        )

    async def _last_sample_time(self) -> int:
        raw = (await attempt(self.store.get_scalar(self.last_sample_key), "read_last_failed", self.timeout)).unwrap_or(None)
        if raw is None:
            return 0
        try:
            return max(int(str(raw).strip()), 0)
        except ValueError:
            logger.warning("sampler.degraded", reason="last_unparsable", value=str(raw))
            return 0

    async def _save_sample(self, current_value: int, now: int) -> None:
        member = encode_sample(now, current_value)
        appended = await attempt(
            self.store.append_sorted_member(self.samples_key, now, member), "save_failed", self.timeout
        )
        if not appended.is_ok:
            return
        marked = await attempt(self.store.set_scalar(self.last_sample_key, str(now)), "save_failed", self.timeout)
        if marked.is_ok:
            logger.info("sampler.sample_saved", timestamp=now, value=current_value)
