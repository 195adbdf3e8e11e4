"""Middleware tests: request ID, rate limiting, CORS, error rendering."""

from collections import Counter

import pytest
from httpx import AsyncClient
from starlette.requests import Request

from offcast.middleware.rate_limit import client_ip


class _FakePipeline:
    def __init__(self, counts: Counter[str]) -> None:
        self.counts = counts
        self.key = ""

    def incr(self, key: str) -> None:
        self.key = key
        self.counts[key] += 1

    def expire(self, key: str, seconds: int) -> None:
        pass

    async def execute(self) -> list[object]:
        return [self.counts[self.key], True]


class _FakeRedis:
    def __init__(self) -> None:
        self.counts: Counter[str] = Counter()

    def pipeline(self) -> _FakePipeline:
        return _FakePipeline(self.counts)


@pytest.fixture
def fake_redis(monkeypatch: pytest.MonkeyPatch) -> _FakeRedis:
    redis = _FakeRedis()
    monkeypatch.setattr("offcast.middleware.rate_limit.get_redis", lambda: redis)
    return redis


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient) -> None:
    """Request ID is auto-generated when not provided."""
    response = await client.get("/health")
    assert len(response.headers["x-request-id"]) == 36


@pytest.mark.asyncio
async def test_request_id_preserved(client: AsyncClient) -> None:
    """Custom request ID is echoed back in response."""
    response = await client.get("/health", headers={"X-Request-Id": "test-abc-123"})
    assert response.headers["x-request-id"] == "test-abc-123"


@pytest.mark.asyncio
async def test_no_throttling_without_redis(client: AsyncClient) -> None:
    response = await client.get("/version")
    assert response.status_code == 200
    assert "x-ratelimit-limit" not in response.headers


@pytest.mark.asyncio
async def test_rate_limit_headers(client: AsyncClient, fake_redis: _FakeRedis) -> None:
    response = await client.get("/version")
    assert response.headers["x-ratelimit-limit"] == "200"
    assert response.headers["x-ratelimit-remaining"] == "199"


@pytest.mark.asyncio
async def test_rate_limit_blocks_excess(client: AsyncClient, fake_redis: _FakeRedis) -> None:
    """The request after the window's quota returns 429 with Retry-After."""
    for _ in range(200):
        await client.get("/version")
    response = await client.get("/version")
    assert response.status_code == 429
    assert response.headers["retry-after"] == "60"
    assert response.json() == {"detail": "Rate limit exceeded. Try again later."}


@pytest.mark.asyncio
async def test_forwarded_header_cannot_escape_limit(client: AsyncClient, fake_redis: _FakeRedis) -> None:
    """A direct caller rotating X-Forwarded-For is still counted as one peer."""
    for _ in range(200):
        await client.get("/version")
    codes = [
        (await client.get("/version", headers={"X-Forwarded-For": f"198.51.100.{i}"})).status_code for i in range(5)
    ]
    assert codes == [429] * 5
    assert all(not key.startswith("ratelimit:198.51.100.") for key in fake_redis.counts)


def _request(peer: str, forwarded: str | None = None) -> Request:
    headers = [(b"x-forwarded-for", forwarded.encode())] if forwarded else []
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers, "client": (peer, 4321)})


def test_client_ip_ignores_untrusted_forwarded_header() -> None:
    assert client_ip(_request("192.0.2.10", "203.0.113.7")) == "192.0.2.10"


def test_client_ip_uses_first_hop_behind_trusted_proxy() -> None:
    request = _request("10.0.0.2", "203.0.113.7, 10.0.0.1")
    assert client_ip(request, trusted_proxies={"10.0.0.2"}) == "203.0.113.7"


@pytest.mark.asyncio
async def test_health_exempt_from_rate_limit(client: AsyncClient, fake_redis: _FakeRedis) -> None:
    for _ in range(5):
        response = await client.get("/health")
        assert response.status_code == 200
    assert not fake_redis.counts


@pytest.mark.asyncio
async def test_cors_preflight(client: AsyncClient) -> None:
    """CORS preflight allows the configured frontend origin."""
    response = await client.options(
        "/api/v1/channels",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


@pytest.mark.asyncio
async def test_404_returns_json(client: AsyncClient) -> None:
    response = await client.get("/nonexistent-path")
    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found"}


@pytest.mark.asyncio
async def test_validation_error_shape(client: AsyncClient) -> None:
    response = await client.get("/api/v1/faq/search", params={"q": ""})
    assert response.status_code == 422
    data = response.json()
    assert data["detail"] == "Validation error"
    assert data["errors"][0]["loc"] == ["query", "q"]
