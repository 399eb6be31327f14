"""
GameSwipe Backend: Room Request/Response Schemas
================================================

What:  Contracts for POST /rooms, POST /rooms/join, GET /rooms/{roomId}.
How:   Request models reject bad input before any service runs; the
       validation handler in main.py turns the errors into 400
       INVALID_REQUEST with the field-level list in `details`.

Validation notes:
    - expiresInHours is a StrictInt: "24", true and 2.5 are all rejected
      rather than coerced.
    - code is only length-checked here; normalisation (strip + upper-case)
      happens in services/room_code.py before lookup.
    - Response models never carry the token hash; the raw token appears
      only in JoinRoomResponse.session and the Set-Cookie header.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, StrictInt

from gameswipe.schemas.common import CamelModel

Role = Literal["creator", "member"]


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class CreateRoomRequest(CamelModel):
    # Strings and booleans are rejected rather than coerced to a lifetime.
    expires_in_hours: Optional[StrictInt] = Field(
        default=None,
        ge=1,
        le=168,
        description="Room lifetime in hours (1-168). Defaults to the server setting (24).",
    )


class JoinRoomRequest(CamelModel):
    code: str = Field(min_length=3, max_length=32, description="Room code, case-insensitive")
    display_name: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=48,
        description="Name shown to other members",
    )


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class RoomSummary(CamelModel):
    id: uuid.UUID
    code: str
    expires_at: datetime


class RoomDetail(RoomSummary):
    created_at: datetime


class CreatorMember(CamelModel):
    id: uuid.UUID
    role: Role


class JoinedMember(CreatorMember):
    display_name: Optional[str] = None


class SessionToken(CamelModel):
    token: str = Field(description="Raw bearer token; returned once and never retrievable again")


class CreateRoomResponse(CamelModel):
    room: RoomSummary
    member: CreatorMember


class JoinRoomResponse(CamelModel):
    """
    Join hands the raw token back in the body as well as in the cookie:
    the join may happen outside a same-origin browser context.
    """

    room: RoomSummary
    member: JoinedMember
    session: SessionToken


class Me(CamelModel):
    member_id: uuid.UUID
    role: Role


class MemberItem(CamelModel):
    id: uuid.UUID
    role: Role
    display_name: Optional[str] = None
    joined_at: datetime
    last_seen_at: datetime


class RoomDetailResponse(CamelModel):
    room: RoomDetail
    me: Me
    members: List[MemberItem] = Field(description="Members ordered by join time")
