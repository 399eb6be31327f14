"""
GameSwipe Backend: Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the whole suite.
How:   Each test gets its own app from create_app(settings), backed by a fresh
       SQLite file under tmp_path, with the Steam Web API replaced by an
       httpx.MockTransport serving canned responses from FakeSteamAPI.

Fixture Hierarchy (all function-scoped):
    ├── settings_factory: build Settings with per-test overrides
    ├── settings:         default test Settings
    ├── fake_steam:       in-memory Steam Web API
    ├── app:              configured FastAPI app with tables created
    ├── client:           HTTPX AsyncClient over ASGITransport
    ├── api:              helper for creating/joining rooms and auth headers
    └── db_session:       AsyncSession on the app's database
"""

import os
from typing import Any, Dict, Optional, Set, Tuple

# Must be set before gameswipe.main is imported: it builds a module-level app.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("SESSION_SECRET", "test-session-secret-not-real")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from gameswipe.config import Settings
from gameswipe.database import Base
from gameswipe.main import create_app

KNOWN_STEAMID = "76561198000000001"
OTHER_STEAMID = "76561198000000002"
UNKNOWN_STEAMID = "76561198999999999"


# ══════════════════════════════════════════════════════════════════════════
# Fake Steam Web API
# ══════════════════════════════════════════════════════════════════════════

class FakeSteamAPI:
    """
    Minimal stand-in for the two Steam endpoints the backend calls.

    players:      steamids GetPlayerSummaries reports as existing
    owned_games:  steamid → GetOwnedGames "response" object
    fail_status:  when set, every call answers with this status
    unreachable:  when set, every call raises a transport error
    """

    def __init__(self):
        self.players: Set[str] = {KNOWN_STEAMID, OTHER_STEAMID}
        self.owned_games: Dict[str, Dict[str, Any]] = {}
        self.fail_status: Optional[int] = None
        self.unreachable = False
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        if self.fail_status is not None:
            return httpx.Response(self.fail_status, json={"error": "upstream"})

        params = request.url.params
        if request.url.path == "/ISteamUser/GetPlayerSummaries/v2/":
            ids = params.get("steamids", "").split(",")
            players = [
                {"steamid": s, "personaname": f"player-{s[-4:]}"}
                for s in ids
                if s in self.players
            ]
            return httpx.Response(200, json={"response": {"players": players}})

        if request.url.path == "/IPlayerService/GetOwnedGames/v1/":
            body = self.owned_games.get(params.get("steamid", ""), {})
            return httpx.Response(200, json={"response": body})

        return httpx.Response(404, json={})


# ══════════════════════════════════════════════════════════════════════════
# API helper
# ══════════════════════════════════════════════════════════════════════════

class ApiHelper:
    """
    Wraps the client so each call acts as exactly one member.

    httpx keeps response cookies in the client jar; the jar is cleared after
    every call so requests only carry the credentials a test passes in.
    """

    def __init__(self, client: AsyncClient, settings: Settings):
        self.client = client
        self.cookie_name = settings.session_cookie_name

    def _token_from(self, response: httpx.Response) -> Optional[str]:
        token = response.cookies.get(self.cookie_name)
        self.client.cookies.clear()
        return token

    @staticmethod
    def auth(token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    def cookie(self, token: str) -> Dict[str, str]:
        return {"Cookie": f"{self.cookie_name}={token}"}

    async def create_room(self, **body) -> Tuple[httpx.Response, Optional[str]]:
        response = await self.client.post("/rooms", json=body)
        return response, self._token_from(response)

    async def join_room(self, code: str, **body) -> Tuple[httpx.Response, Optional[str]]:
        response = await self.client.post("/rooms/join", json={"code": code, **body})
        return response, self._token_from(response)

    async def request(self, method: str, url: str, token: Optional[str] = None, **kwargs) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        if token is not None:
            headers.update(self.auth(token))
        response = await self.client.request(method, url, headers=headers, **kwargs)
        self.client.cookies.clear()
        return response


# ══════════════════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def settings_factory(tmp_path):
    """Build Settings for a per-test SQLite file; keyword overrides win."""

    def _make(**overrides) -> Settings:
        values = {
            "database_url": f"sqlite+aiosqlite:///{tmp_path / 'gameswipe_test.db'}",
            "session_secret": "test-session-secret-not-real",
            "steam_web_api_key": "test-steam-key",
            "log_level": "WARNING",
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def settings(settings_factory) -> Settings:
    return settings_factory()


@pytest.fixture
def fake_steam() -> FakeSteamAPI:
    return FakeSteamAPI()


async def build_test_app(settings: Settings, fake_steam: FakeSteamAPI):
    app = create_app(settings)
    await app.state.steam_http.aclose()
    app.state.steam_http = httpx.AsyncClient(transport=httpx.MockTransport(fake_steam.handler))
    async with app.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return app


async def close_test_app(app) -> None:
    await app.state.steam_http.aclose()
    await app.state.engine.dispose()


@pytest_asyncio.fixture
async def app(settings, fake_steam):
    test_app = await build_test_app(settings, fake_steam)
    yield test_app
    await close_test_app(test_app)


@pytest_asyncio.fixture
async def client(app):
    """
    HTTPX AsyncClient routed straight into the app (no server, no lifespan).

    Usage:
        async def test_health(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def api(client, settings) -> ApiHelper:
    return ApiHelper(client, settings)


@pytest_asyncio.fixture
async def db_session(app):
    """A session on the app's database, for arranging and inspecting rows."""
    async with app.state.session_factory() as session:
        yield session
