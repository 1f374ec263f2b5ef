from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..api_clients.base import CountSourceError
from ..api_clients.roblox import RobloxGamesClient
from ..deps import get_clock, get_count_source, get_peak_tracker, get_rate_limit_state, get_rate_limiter
from ..logging_config import logger
from ..models.schemas import PlayerCount, PlayerCountError, RateLimitedError
from ..services.sampler import PeakTracker
from ..utils.ip_tools import client_identifier
from ..utils.rate_limiter import RateLimiter, RateLimitState

router = APIRouter(prefix="/api", tags=["players"])

SOURCE_ERROR_MESSAGE = "Failed to fetch player count"


def _iso_timestamp(now: int) -> str:
    moment = datetime.fromtimestamp(now / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@router.api_route("/players", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def players(
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
    limit_state: RateLimitState = Depends(get_rate_limit_state),
    source: RobloxGamesClient = Depends(get_count_source),
    tracker: PeakTracker = Depends(get_peak_tracker),
    clock: Callable[[], int] = Depends(get_clock),
) -> JSONResponse:
    now = clock()
    client_id = client_identifier(request)
    admission = await limiter.check(limit_state, client_id, now)
    if not admission.allowed:
        body = RateLimitedError(retry_after=admission.retry_after_seconds)
        return JSONResponse(
            status_code=429,
            content=body.model_dump(by_alias=True),
            headers={"Retry-After": str(admission.retry_after_seconds)},
        )

    playing = 0
    try:
        playing = await source.fetch_playing()
        peaks = await tracker.record_and_query(playing, now)
    except CountSourceError as exc:
        logger.warning("players.source_failed", client=client_id, error=str(exc))
        return _failure(playing)
    except Exception as exc:
        logger.exception("players.failed", client=client_id, error=str(exc))
        return _failure(playing)

    payload = PlayerCount(
        playing=playing,
        peak_24h=peaks.peak_24h,
        peak_7d=peaks.peak_7d,
        updated_at=_iso_timestamp(now),
    )
    logger.info("players.served", playing=playing, peak24h=peaks.peak_24h, peak7d=peaks.peak_7d)
    return JSONResponse(status_code=200, content=payload.model_dump(by_alias=True))


def _failure(playing: int) -> JSONResponse:
    body = PlayerCountError(error=SOURCE_ERROR_MESSAGE, playing=playing, peak_24h=playing, peak_7d=playing)
    return JSONResponse(status_code=500, content=body.model_dump(by_alias=True))
