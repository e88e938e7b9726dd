import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from leadcapture.middleware.rate_limiter import RateLimitingMiddleware


class FakeRedis:
    def __init__(self):
        self.counts = {}
        self.expiries = {}

    async def incr(self, key):
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    async def expire(self, key, seconds):
        self.expiries[key] = seconds


class BrokenRedis:
    async def incr(self, key):
        raise RedisConnectionError("connection refused")


def _app(redis_client, limit=2):
    app = FastAPI()

    async def factory():
        return redis_client

    app.add_middleware(
        RateLimitingMiddleware,
        limited_paths=["/api/leads"],
        redis_factory=factory,
        limit=limit,
        period=900,
    )

    @app.post("/api/leads")
    async def leads():
        return {"ok": True}

    @app.post("/api/upsell")
    async def upsell():
        return {"ok": True}

    return app


@pytest.mark.asyncio
async def test_blocks_after_limit():
    redis_client = FakeRedis()
    transport = ASGITransport(app=_app(redis_client))

    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        first = await ac.post("/api/leads", headers={"X-Forwarded-For": "198.51.100.4"})
        second = await ac.post("/api/leads", headers={"X-Forwarded-For": "198.51.100.4"})
        third = await ac.post("/api/leads", headers={"X-Forwarded-For": "198.51.100.4"})
        other_ip = await ac.post("/api/leads", headers={"X-Forwarded-For": "198.51.100.5"})

    assert first.status_code == 200
    assert first.headers["X-RateLimit-Remaining"] == "1"
    assert second.status_code == 200
    assert third.status_code == 429
    assert third.json()["code"] == "rate_limited"
    assert int(third.headers["Retry-After"]) <= 900
    assert other_ip.status_code == 200
    assert set(redis_client.expiries.values()) == {900}


@pytest.mark.asyncio
async def test_other_paths_are_not_limited():
    redis_client = FakeRedis()
    transport = ASGITransport(app=_app(redis_client, limit=1))

    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        for _ in range(3):
            response = await ac.post("/api/upsell")
            assert response.status_code == 200

    assert redis_client.counts == {}


@pytest.mark.asyncio
async def test_fails_open_when_redis_is_down():
    transport = ASGITransport(app=_app(BrokenRedis(), limit=1))

    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        for _ in range(3):
            response = await ac.post("/api/leads")
            assert response.status_code == 200
