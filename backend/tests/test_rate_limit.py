"""
GameSwipe Backend: Join Rate Limit Tests
========================================

What we test:
    ✅ POST /rooms/join answers 429 RATE_LIMITED once the window is full
    ✅ The 429 carries Retry-After and details.retryAfter
    ✅ Other endpoints are not counted or limited
    ✅ A new window lets requests through again
"""

import asyncio

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from conftest import build_test_app, close_test_app

LIMIT = 3


@pytest_asyncio.fixture
async def limited_client(settings_factory, fake_steam):
    settings = settings_factory(join_rate_limit_requests=LIMIT, join_rate_limit_window=60)
    app = await build_test_app(settings, fake_steam)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    await close_test_app(app)


class TestJoinRateLimit:

    @pytest.mark.asyncio
    async def test_join_is_limited_after_quota(self, limited_client):
        for _ in range(LIMIT):
            response = await limited_client.post("/rooms/join", json={"code": "NOPE42"})
            assert response.status_code == 404

        response = await limited_client.post("/rooms/join", json={"code": "NOPE42"})

        assert response.status_code == 429
        body = response.json()
        assert body["error"]["code"] == "RATE_LIMITED"
        retry_after = int(response.headers["Retry-After"])
        assert 1 <= retry_after <= 60
        assert body["error"]["details"] == {"retryAfter": retry_after}

    @pytest.mark.asyncio
    async def test_other_endpoints_are_not_limited(self, limited_client):
        for _ in range(LIMIT + 2):
            assert (await limited_client.post("/rooms")).status_code == 201
            assert (await limited_client.get("/health")).status_code == 200

        response = await limited_client.post("/rooms/join", json={"code": "NOPE42"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_window_resets(self, settings_factory, fake_steam):
        settings = settings_factory(join_rate_limit_requests=1, join_rate_limit_window=1)
        app = await build_test_app(settings, fake_steam)
        try:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
                assert (await client.post("/rooms/join", json={"code": "NOPE42"})).status_code == 404
                assert (await client.post("/rooms/join", json={"code": "NOPE42"})).status_code == 429

                await asyncio.sleep(1.1)

                assert (await client.post("/rooms/join", json={"code": "NOPE42"})).status_code == 404
        finally:
            await close_test_app(app)
