from __future__ import annotations

import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from playerpeaks.api_clients.roblox import RobloxGamesClient
from playerpeaks.app import app
from playerpeaks.config import get_settings
from playerpeaks.deps import get_clock, get_count_source, rate_limit_state
from playerpeaks.store import MemorySampleStore, store_provider

START_MS = 1_700_000_000_000


class FakeClock:
    def __init__(self, now: int = START_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


class FakeRoblox:
    """Serves a configurable games API payload through an httpx mock transport."""

    def __init__(self) -> None:
        self.status_code = 200
        self.payload: object = {"data": [{"playing": 42}]}
        self.requests: list[httpx.Request] = []

    def set_playing(self, playing: int) -> None:
        self.payload = {"data": [{"id": 8779464785, "playing": playing}]}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)

    def client(self) -> RobloxGamesClient:
        return RobloxGamesClient("8779464785", transport=httpx.MockTransport(self.handler))


class BrokenStore(MemorySampleStore):
    """Memory store whose named operations raise a connection error."""

    backend = "redis"

    def __init__(self, *failing: str) -> None:
        super().__init__()
        self.failing = set(failing) or {
            "get_scalar",
            "set_scalar",
            "append_sorted_member",
            "range_by_score",
            "remove_by_score_range",
            "ping",
        }

    def _check(self, name: str) -> None:
        if name in self.failing:
            raise ConnectionError(f"{name} unavailable")

    async def get_scalar(self, key):
        self._check("get_scalar")
        return await super().get_scalar(key)

    async def set_scalar(self, key, value):
        self._check("set_scalar")
        await super().set_scalar(key, value)

    async def append_sorted_member(self, key, score, member):
        self._check("append_sorted_member")
        await super().append_sorted_member(key, score, member)

    async def range_by_score(self, key, minimum, maximum):
        self._check("range_by_score")
        return await super().range_by_score(key, minimum, maximum)

    async def remove_by_score_range(self, key, minimum, maximum):
        self._check("remove_by_score_range")
        return await super().remove_by_score_range(key, minimum, maximum)

    async def ping(self):
        self._check("ping")
        return True


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    for key in ("REDIS_URL", "KV_URL"):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_state():
    rate_limit_state.clear()
    store_provider.reset()
    app.dependency_overrides.clear()
    yield
    app.dependency_overrides.clear()


@pytest.fixture()
def clock() -> FakeClock:
    fake = FakeClock()
    app.dependency_overrides[get_clock] = lambda: fake
    return fake


@pytest.fixture()
def roblox() -> FakeRoblox:
    fake = FakeRoblox()
    app.dependency_overrides[get_count_source] = fake.client
    return fake


@pytest.fixture()
def client(clock, roblox) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def run():
    return asyncio.run


@pytest.fixture()
def broken_store():
    return BrokenStore
