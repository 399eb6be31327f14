"""
GameSwipe Backend: Route Dependencies
=====================================

What:  FastAPI dependency providers for settings, services and the
       authenticated member.
How:   Everything hangs off `request.app.state`, populated once by
       `create_app()`. Services are cheap objects built per request around
       those shared resources.

Session extraction order:
    1. The session cookie (SESSION_COOKIE_NAME, default "gs_session")
    2. `Authorization: Bearer <token>`
    A cookie token that fails verification does not end the lookup: the
    Bearer token, when present, is tried next. No usable token at all is
    401 UNAUTHORISED with one fixed message.
"""

from typing import List

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from gameswipe.config import Settings
from gameswipe.database import get_db_session
from gameswipe.exceptions import UnauthenticatedError
from gameswipe.models.room import Member
from gameswipe.services.room_service import RoomService
from gameswipe.services.session_service import SessionService
from gameswipe.services.steam_client import SteamClient
from gameswipe.services.steam_service import SteamIdentityService, SteamLibraryService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_service(settings: Settings = Depends(get_settings)) -> SessionService:
    return SessionService(settings)


def get_room_service(
    settings: Settings = Depends(get_settings),
    sessions: SessionService = Depends(get_session_service),
) -> RoomService:
    return RoomService(settings, sessions)


def get_steam_client(request: Request, settings: Settings = Depends(get_settings)) -> SteamClient:
    return SteamClient(
        http_client=request.app.state.steam_http,
        api_key=settings.steam_web_api_key,
        base_url=settings.steam_api_base_url,
    )


def get_steam_identity_service(client: SteamClient = Depends(get_steam_client)) -> SteamIdentityService:
    return SteamIdentityService(client)


def get_steam_library_service(client: SteamClient = Depends(get_steam_client)) -> SteamLibraryService:
    return SteamLibraryService(client)


def extract_session_tokens(request: Request, cookie_name: str) -> List[str]:
    """Candidate tokens in the order they are tried: cookie, then Bearer."""
    tokens = []
    cookie = request.cookies.get(cookie_name)
    if cookie:
        tokens.append(cookie)

    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    bearer = credentials.strip()
    if scheme.lower() == "bearer" and bearer and bearer not in tokens:
        tokens.append(bearer)
    return tokens


async def get_current_member(
    request: Request,
    settings: Settings = Depends(get_settings),
    sessions: SessionService = Depends(get_session_service),
    db: AsyncSession = Depends(get_db_session),
) -> Member:
    """
    Resolve the caller's session to a Member or raise UnauthenticatedError.

    A cookie that fails verification falls through to the Bearer header, so a
    stale browser cookie cannot shadow a valid token sent by the client.
    """
    for token in extract_session_tokens(request, settings.session_cookie_name):
        try:
            return await sessions.verify(db, token)
        except UnauthenticatedError:
            continue
    raise UnauthenticatedError()
