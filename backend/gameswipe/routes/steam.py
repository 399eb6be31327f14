"""
GameSwipe Backend: Steam Route Handlers
=======================================

What:  PUT/GET /steam/identity, POST /steam/library/sync, GET /steam/library.
How:   Every endpoint requires a session; the acting member is always the
       session's member, never one named in the request.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gameswipe.database import get_db_session
from gameswipe.dependencies import (
    get_current_member,
    get_steam_identity_service,
    get_steam_library_service,
)
from gameswipe.models.room import Member
from gameswipe.schemas.common import ErrorResponse
from gameswipe.schemas.steam import (
    LibraryResponse,
    LibrarySyncResponse,
    SteamIdentityRequest,
    SteamIdentityResponse,
)
from gameswipe.services.steam_service import SteamIdentityService, SteamLibraryService

router = APIRouter(prefix="/steam", tags=["Steam"])

_UNAUTHORISED = {401: {"description": "Missing or invalid session", "model": ErrorResponse}}
_UPSTREAM = {502: {"description": "Steam Web API failure", "model": ErrorResponse}}


@router.put(
    "/identity",
    response_model=SteamIdentityResponse,
    responses={
        400: {"description": "steamid64 is not 17 digits", "model": ErrorResponse},
        404: {"description": "Steam account not found", "model": ErrorResponse},
        **_UNAUTHORISED,
        **_UPSTREAM,
    },
    summary="Link a Steam account to the current member",
)
async def put_identity(
    body: SteamIdentityRequest,
    me: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db_session),
    identities: SteamIdentityService = Depends(get_steam_identity_service),
) -> SteamIdentityResponse:
    return await identities.link(db, me.id, body.steamid64)


@router.get(
    "/identity",
    response_model=SteamIdentityResponse,
    responses={
        404: {"description": "No Steam identity linked", "model": ErrorResponse},
        **_UNAUTHORISED,
    },
    summary="Read the current member's Steam link",
)
async def get_identity(
    me: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db_session),
    identities: SteamIdentityService = Depends(get_steam_identity_service),
) -> SteamIdentityResponse:
    return await identities.get(db, me.id)


@router.post(
    "/library/sync",
    response_model=LibrarySyncResponse,
    responses={
        403: {"description": "Owned games not visible", "model": ErrorResponse},
        404: {"description": "No Steam identity linked", "model": ErrorResponse},
        **_UNAUTHORISED,
        **_UPSTREAM,
    },
    summary="Refresh the cached owned-games list",
    description=(
        "Fetches the linked account's owned games from Steam and replaces the cache. "
        "An empty list is reported as STEAM_GAMES_NOT_VISIBLE and leaves the cache untouched."
    ),
)
async def sync_library(
    me: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db_session),
    library: SteamLibraryService = Depends(get_steam_library_service),
) -> LibrarySyncResponse:
    return await library.sync(db, me.id)


@router.get(
    "/library",
    response_model=LibraryResponse,
    responses={
        404: {"description": "Nothing cached yet", "model": ErrorResponse},
        **_UNAUTHORISED,
    },
    summary="Read the cached owned-games list",
)
async def get_library(
    me: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db_session),
    library: SteamLibraryService = Depends(get_steam_library_service),
) -> LibraryResponse:
    return await library.get(db, me.id)
