"""
GameSwipe Backend: Room Route Handlers
======================================

What:  POST /rooms, POST /rooms/join, GET /rooms/{room_id}, DELETE /rooms/{room_id}.
How:   Thin handlers: validate, call RoomService, set the session cookie.
Who:   Called by the frontend lobby screens.

Session cookie:
    HTTP-only, SameSite=Lax, path "/", Max-Age = SESSION_TTL_DAYS days,
    Secure when SESSION_COOKIE_SECURE is set. Create and join both set it;
    join also returns the raw token in the body for non-browser clients.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from gameswipe.config import Settings
from gameswipe.database import get_db_session
from gameswipe.dependencies import get_current_member, get_room_service, get_settings
from gameswipe.models.room import Member
from gameswipe.schemas.common import ErrorResponse
from gameswipe.schemas.room import (
    CreateRoomRequest,
    CreateRoomResponse,
    JoinRoomRequest,
    JoinRoomResponse,
    RoomDetailResponse,
)
from gameswipe.services.room_service import RoomService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rooms", tags=["Rooms"])


def set_session_cookie(response: Response, settings: Settings, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_seconds,
        path="/",
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


@router.post(
    "",
    response_model=CreateRoomResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid request body", "model": ErrorResponse},
        500: {"description": "Room code allocation failed", "model": ErrorResponse},
    },
    summary="Create a room",
    description="Creates a room and its creator member, and sets the creator's session cookie.",
)
async def create_room(
    response: Response,
    body: Optional[CreateRoomRequest] = None,
    db: AsyncSession = Depends(get_db_session),
    rooms: RoomService = Depends(get_room_service),
    settings: Settings = Depends(get_settings),
) -> CreateRoomResponse:
    expires_in_hours = body.expires_in_hours if body else None
    result, token = await rooms.create_room(db, expires_in_hours=expires_in_hours)
    set_session_cookie(response, settings, token)
    return result


@router.post(
    "/join",
    response_model=JoinRoomResponse,
    responses={
        400: {"description": "Invalid request body", "model": ErrorResponse},
        404: {"description": "No room with this code", "model": ErrorResponse},
        410: {"description": "Room deleted or expired", "model": ErrorResponse},
        429: {"description": "Too many join attempts", "model": ErrorResponse},
    },
    summary="Join a room by code",
)
async def join_room(
    body: JoinRoomRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    rooms: RoomService = Depends(get_room_service),
    settings: Settings = Depends(get_settings),
) -> JoinRoomResponse:
    """
    Join the room addressed by `code`. Codes are case-insensitive.

    The session token is returned both as a cookie and in `session.token`.
    """
    result = await rooms.join_room(db, body.code, display_name=body.display_name)
    set_session_cookie(response, settings, result.session.token)
    return result


@router.get(
    "/{room_id}",
    response_model=RoomDetailResponse,
    responses={
        401: {"description": "Missing or invalid session", "model": ErrorResponse},
        403: {"description": "Caller belongs to another room", "model": ErrorResponse},
        404: {"description": "Room not found", "model": ErrorResponse},
        410: {"description": "Room deleted or expired", "model": ErrorResponse},
    },
    summary="Fetch a room and its members",
)
async def get_room(
    room_id: UUID,
    response: Response,
    me: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db_session),
    rooms: RoomService = Depends(get_room_service),
) -> RoomDetailResponse:
    result = await rooms.get_room(db, room_id, me)
    # Membership lists change as people join; never cache.
    response.headers["Cache-Control"] = "no-store"
    return result


@router.delete(
    "/{room_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={
        401: {"description": "Missing or invalid session", "model": ErrorResponse},
        403: {"description": "Caller is not the room creator", "model": ErrorResponse},
        404: {"description": "Room not found", "model": ErrorResponse},
        410: {"description": "Room already deleted", "model": ErrorResponse},
    },
    summary="Delete a room (creator only)",
)
async def delete_room(
    room_id: UUID,
    me: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db_session),
    rooms: RoomService = Depends(get_room_service),
) -> Response:
    await rooms.delete_room(db, room_id, me)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
