"""Shared fixtures for pyshoptheme tests."""

import json

import httpx
import pytest

from pyshoptheme.api import ShopifyThemeClient
from pyshoptheme.budget import BudgetTracker


class FakeClock:
    """Manually advanced clock whose sleep moves time forward."""

    def __init__(self, now: float = 1000.0):
        self.now = now
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeStore:
    """In-memory stand-in for the store's asset endpoint."""

    def __init__(self, call_limit: str = "1/40"):
        self.assets: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []
        self.call_limit = call_limit
        self.status_override: dict[str, int] = {}

    def _respond(self, status: int, body: dict) -> httpx.Response:
        headers = {"X-Request-Id": "req-123"}
        if self.call_limit:
            headers["X-Shopify-Shop-Api-Call-Limit"] = self.call_limit
        return httpx.Response(status, json=body, headers=headers)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        override = self.status_override.get(request.method)
        if override:
            return self._respond(override, {"errors": "Not allowed"})

        if request.method == "GET":
            key = request.url.params.get("asset[key]")
            if key is None:
                listing = [{"key": k} for k in self.assets]
                return self._respond(200, {"assets": listing})
            if key not in self.assets:
                return self._respond(404, {"errors": "Not Found"})
            return self._respond(200, {"asset": {"key": key, **self.assets[key]}})

        body = json.loads(request.content)["asset"]
        key = body.pop("key")
        if request.method == "PUT":
            self.assets[key] = body
            return self._respond(200, {"asset": {"key": key}})
        if request.method == "DELETE":
            self.assets.pop(key, None)
            return self._respond(200, {"message": "ok"})
        return self._respond(405, {"errors": "Method not allowed"})


@pytest.fixture
def clock():
    """Provide a fake clock."""
    return FakeClock()


@pytest.fixture
def budget(clock):
    """Provide a budget tracker driven by the fake clock."""
    return BudgetTracker(clock=clock, sleep=clock.sleep)


@pytest.fixture
def fake_store():
    """Provide an in-memory store."""
    return FakeStore()


@pytest.fixture
def client(fake_store, budget):
    """Provide a client wired to the in-memory store."""
    theme_client = ShopifyThemeClient(
        store="example.myshopify.com",
        api_key="key",
        password="secret",
        theme_id=1234,
        budget=budget,
        retry_delay=0,
        transport=httpx.MockTransport(fake_store.handler),
    )
    yield theme_client
    theme_client.close()
