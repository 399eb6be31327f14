"""
GameSwipe Backend: Steam Web API Client
=======================================

What:  Thin async client for the two Steam Web API calls this service needs.
How:   Shares one httpx.AsyncClient (created in the app lifespan, replaced by
       an httpx.MockTransport-backed client in tests).
Who:   Used by SteamIdentityService (account lookup) and SteamLibraryService
       (owned games).

Endpoints:
    GET /ISteamUser/GetPlayerSummaries/v2/?key=&steamids=
        → {"response": {"players": [{"steamid": "...", "personaname": "..."}]}}
    GET /IPlayerService/GetOwnedGames/v1/?key=&steamid=&include_appinfo=0&include_played_free_games=1
        → {"response": {"game_count": N, "games": [{"appid": 10, "playtime_forever": 5}]}}
        Private profiles answer with an empty "response" object.

Failure model:
    Non-2xx status or transport error → SteamUpstreamError (502).
    No retries: the caller sees the failure immediately.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from gameswipe.exceptions import InternalError, SteamUpstreamError

logger = logging.getLogger(__name__)


@dataclass
class OwnedGames:
    game_count: int
    games: List[Dict[str, Any]] = field(default_factory=list)


class SteamClient:
    """Steam Web API calls used for identity linking and library sync."""

    def __init__(self, http_client: httpx.AsyncClient, api_key: str, base_url: str):
        self._http = http_client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

    def _require_key(self) -> str:
        if not self._api_key:
            raise InternalError("STEAM_WEB_API_KEY is not configured")
        return self._api_key

    async def _get_json(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self._base_url}{path}"
        start_time = time.perf_counter()
        try:
            response = await self._http.get(url, params=params)
        except httpx.HTTPError as e:
            # Log the exception type only: the request URL carries the API key.
            logger.warning("Steam API request to %s failed: %s", path, type(e).__name__)
            raise SteamUpstreamError("Steam API unreachable") from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        if response.status_code >= 400:
            logger.warning("Steam API %s answered %d in %.0fms", path, response.status_code, duration_ms)
            raise SteamUpstreamError(f"Steam API error ({response.status_code})")

        logger.debug("Steam API %s answered %d in %.0fms", path, response.status_code, duration_ms)
        try:
            data = response.json()
        except ValueError as e:
            raise SteamUpstreamError("Steam API returned invalid JSON") from e
        return data if isinstance(data, dict) else {}

    async def account_exists(self, steamid64: str) -> bool:
        """True when GetPlayerSummaries lists a player with exactly this id."""
        data = await self._get_json(
            "/ISteamUser/GetPlayerSummaries/v2/",
            {"key": self._require_key(), "steamids": steamid64},
        )
        players = (data.get("response") or {}).get("players") or []
        return any(p.get("steamid") == steamid64 for p in players if isinstance(p, dict))

    async def fetch_owned_games(self, steamid64: str) -> OwnedGames:
        """
        Fetch the owned-games list for `steamid64`.

        game_count is the upstream count when it is numeric, otherwise the
        length of the returned list. An empty list is returned as-is; deciding
        what "empty" means is the caller's job.
        """
        data = await self._get_json(
            "/IPlayerService/GetOwnedGames/v1/",
            {
                "key": self._require_key(),
                "steamid": steamid64,
                "include_appinfo": 0,
                "include_played_free_games": 1,
            },
        )
        body = data.get("response") or {}
        games = [g for g in (body.get("games") or []) if isinstance(g, dict)]
        upstream_count: Optional[Any] = body.get("game_count")
        game_count = upstream_count if isinstance(upstream_count, int) and not isinstance(upstream_count, bool) else len(games)
        return OwnedGames(game_count=game_count, games=games)
