from __future__ import annotations

from typing import Any

import httpx


class CountSourceError(Exception):
    pass


class JsonSourceClient:
    name: str

    def __init__(self, base_url: str, timeout: float, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(path, params=params, headers=self._headers())
        except httpx.HTTPError as exc:
            raise CountSourceError(f"{self.name} request failed: {exc}") from exc
        if not response.is_success:
            raise CountSourceError(f"{self.name} responded with status {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise CountSourceError(f"{self.name} returned a non-JSON body") from exc

    def _headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}
