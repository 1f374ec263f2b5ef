from __future__ import annotations

from typing import Any

import httpx

from .base import CountSourceError, JsonSourceClient


class RobloxGamesClient(JsonSourceClient):
    name = "roblox"

    def __init__(
        self,
        universe_id: str,
        base_url: str = "https://games.roblox.com",
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, timeout, transport)
        self.universe_id = universe_id

    async def fetch_playing(self) -> int:
        payload = await self._get_json("/v1/games", params={"universeIds": self.universe_id})
        return extract_playing(payload)


def extract_playing(payload: Any) -> int:
    """Return the ``playing`` count of the first game entry in a games API payload.

    An absent payload, a missing or non-list ``data`` field and an empty list are
    all reported as :class:`CountSourceError`. A first entry without an integer
    ``playing`` field counts as zero players.
    """
    if not isinstance(payload, dict):
        raise CountSourceError("roblox returned an unexpected payload")
    entries = payload.get("data")
    if not isinstance(entries, list) or not entries:
        raise CountSourceError("roblox returned no game entries")
    first = entries[0]
    playing = first.get("playing") if isinstance(first, dict) else None
    if isinstance(playing, bool) or not isinstance(playing, int) or playing < 0:
        return 0
    return playing
