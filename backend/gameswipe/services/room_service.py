"""
GameSwipe Backend: Room Lifecycle Service
=========================================

What:  Create, join, fetch and delete rooms; issue and revoke the sessions
       that go with them.
How:   Every operation works inside the caller's request transaction
       (see database.get_db_session): it only adds/flushes, and the whole
       request commits or rolls back as one unit.
Who:   Called by routes/rooms.py.

Room state machine:
    Active → Deleted   soft-delete by the creator (terminal)
    Active → Expired   expires_at passes (terminal, derived from time)

Code allocation:
    A random code is inserted inside a SAVEPOINT. If the insert trips the
    uq_rooms_code constraint only that SAVEPOINT is rolled back, a new code is
    drawn, and the insert is retried, at most ROOM_CODE_MAX_ATTEMPTS times in
    total. Exhaustion surfaces as RoomCodeAllocationError (500).
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import RetryError, retry, retry_if_exception_type, stop_after_attempt

from gameswipe.clock import ensure_utc, utcnow
from gameswipe.config import Settings
from gameswipe.exceptions import (
    ForbiddenError,
    RoomCodeAllocationError,
    RoomGoneError,
    RoomNotFoundError,
)
from gameswipe.models.room import ROLE_CREATOR, ROLE_MEMBER, Member, Room
from gameswipe.schemas.room import (
    CreateRoomResponse,
    CreatorMember,
    JoinedMember,
    JoinRoomResponse,
    Me,
    MemberItem,
    RoomDetail,
    RoomDetailResponse,
    RoomSummary,
    SessionToken,
)
from gameswipe.services.room_code import generate_room_code, normalize_room_code
from gameswipe.services.session_service import SessionService

logger = logging.getLogger(__name__)

ROOM_CODE_MAX_ATTEMPTS = 8


class RoomCodeCollision(Exception):
    """A single insert attempt hit the unique constraint on rooms.code."""

    def __init__(self, code: str):
        super().__init__(f"Room code {code} already taken")
        self.code = code


def is_room_code_violation(exc: IntegrityError) -> bool:
    """
    True when the IntegrityError comes from the rooms.code uniqueness
    constraint (PostgreSQL names the constraint, SQLite names the column).
    """
    message = str(exc.orig)
    return "uq_rooms_code" in message or "rooms.code" in message


class RoomService:
    """
    Business logic for the room lifecycle.

    Responsibilities:
        - create_room(): allocate a code, create the creator, issue a session
        - join_room():   resolve a code, create a member, issue a session
        - get_room():    room + membership list for one of its members
        - delete_room(): soft-delete by the creator, revoke sessions
    """

    def __init__(self, settings: Settings, sessions: SessionService):
        self._settings = settings
        self._sessions = sessions

    # ── Create ────────────────────────────────────────────────────────────
    async def create_room(
        self,
        db: AsyncSession,
        expires_in_hours: Optional[int] = None,
    ) -> Tuple[CreateRoomResponse, str]:
        """
        Create a room, its creator member and the creator's session.

        Returns:
            (response body, raw session token for the cookie)

        Raises:
            RoomCodeAllocationError: every code attempt collided
        """
        hours = expires_in_hours or self._settings.room_default_ttl_hours
        expires_at = utcnow() + timedelta(hours=hours)

        try:
            room = await self._insert_room(db, expires_at)
        except RetryError:
            logger.error(
                "Room code allocation failed after %d attempts (length=%d)",
                ROOM_CODE_MAX_ATTEMPTS,
                self._settings.room_code_length,
            )
            raise RoomCodeAllocationError()

        creator = Member(room_id=room.id, role=ROLE_CREATOR)
        db.add(creator)
        await db.flush()

        token = await self._sessions.issue(db, creator.id)
        logger.info("Room %s created with code %s, expires %s", room.id, room.code, expires_at.isoformat())

        response = CreateRoomResponse(
            room=_room_summary(room),
            member=CreatorMember(id=creator.id, role=creator.role),
        )
        return response, token

    @retry(
        retry=retry_if_exception_type(RoomCodeCollision),
        stop=stop_after_attempt(ROOM_CODE_MAX_ATTEMPTS),
    )
    async def _insert_room(self, db: AsyncSession, expires_at: datetime) -> Room:
        room = Room(
            code=generate_room_code(self._settings.room_code_length),
            expires_at=expires_at,
        )
        try:
            async with db.begin_nested():
                db.add(room)
        except IntegrityError as e:
            if is_room_code_violation(e):
                logger.warning("Room code collision on %s, drawing a new code", room.code)
                raise RoomCodeCollision(room.code) from e
            raise
        return room

    # ── Join ──────────────────────────────────────────────────────────────
    async def join_room(
        self,
        db: AsyncSession,
        code: str,
        display_name: Optional[str] = None,
    ) -> JoinRoomResponse:
        """
        Join the room addressed by `code` (case-insensitive).

        Raises:
            RoomNotFoundError: no room ever had this code
            RoomGoneError:     the room was deleted or has expired
        """
        normalized = normalize_room_code(code)
        result = await db.execute(select(Room).where(Room.code == normalized))
        room = result.scalar_one_or_none()

        if room is None:
            logger.info("Join failed: unknown code %s", normalized)
            raise RoomNotFoundError()
        if not room.is_live():
            logger.info("Join failed: room %s is gone", room.id)
            raise RoomGoneError()

        member = Member(
            room_id=room.id,
            role=ROLE_MEMBER,
            display_name=(display_name.strip() or None) if display_name else None,
        )
        db.add(member)
        await db.flush()

        token = await self._sessions.issue(db, member.id)
        logger.info("Member %s joined room %s", member.id, room.id)

        return JoinRoomResponse(
            room=_room_summary(room),
            member=JoinedMember(id=member.id, role=member.role, display_name=member.display_name),
            session=SessionToken(token=token),
        )

    # ── Fetch ─────────────────────────────────────────────────────────────
    async def get_room(self, db: AsyncSession, room_id: uuid.UUID, me: Member) -> RoomDetailResponse:
        """
        Return the room and its ordered membership list.

        Raises:
            RoomNotFoundError: no such room
            ForbiddenError:    the caller belongs to a different room
            RoomGoneError:     the room was deleted or has expired
        """
        room = await db.get(Room, room_id)
        if room is None:
            raise RoomNotFoundError()
        if me.room_id != room.id:
            raise ForbiddenError("You are not a member of this room")
        if not room.is_live():
            raise RoomGoneError()

        result = await db.execute(
            select(Member)
            .where(Member.room_id == room.id)
            .order_by(Member.joined_at.asc(), Member.id.asc())
        )
        members: List[Member] = list(result.scalars().all())

        return RoomDetailResponse(
            room=RoomDetail(
                id=room.id,
                code=room.code,
                created_at=ensure_utc(room.created_at),
                expires_at=ensure_utc(room.expires_at),
            ),
            me=Me(member_id=me.id, role=me.role),
            members=[
                MemberItem(
                    id=m.id,
                    role=m.role,
                    display_name=m.display_name,
                    joined_at=ensure_utc(m.joined_at),
                    last_seen_at=ensure_utc(m.last_seen_at),
                )
                for m in members
            ],
        )

    # ── Delete ────────────────────────────────────────────────────────────
    async def delete_room(self, db: AsyncSession, room_id: uuid.UUID, me: Member) -> None:
        """
        Soft-delete the room and revoke its members' sessions.

        The deleting creator keeps a working session so that a follow-up
        fetch reports 410 Gone; every other member's session is revoked.
        Expired rooms may still be deleted.

        Raises:
            RoomNotFoundError: no such room
            ForbiddenError:    the caller is not this room's creator
            RoomGoneError:     the room is already deleted
        """
        result = await db.execute(select(Room).where(Room.id == room_id).with_for_update())
        room = result.scalar_one_or_none()
        if room is None:
            raise RoomNotFoundError()
        if me.room_id != room.id or not me.is_creator:
            logger.warning("Member %s attempted to delete room %s without creator role", me.id, room_id)
            raise ForbiddenError("Only the room creator can delete this room")
        if room.deleted_at is not None:
            raise RoomGoneError()

        room.deleted_at = utcnow()
        revoked = await self._sessions.revoke_room(db, room.id, keep_member_id=me.id)
        await db.flush()
        logger.info("Room %s deleted by %s; %d sessions revoked", room.id, me.id, revoked)


def _room_summary(room: Room) -> RoomSummary:
    return RoomSummary(id=room.id, code=room.code, expires_at=ensure_utc(room.expires_at))
