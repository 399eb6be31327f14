"""
GameSwipe Backend: Room and Member SQLAlchemy Models
=====================================================

What:  ORM models for the `rooms` and `members` tables.
How:   Inherit from the shared DeclarativeBase; Alembic revision 001 mirrors
       these definitions.

Table Design:
    rooms
        - code: short uppercase join code, unique (uq_rooms_code). The room
          service relies on this constraint to detect collisions.
        - deleted_at: soft-delete marker. A deleted room keeps its row so that
          clients get 410 Gone rather than 404 Not Found.
        - A room is live iff deleted_at IS NULL and expires_at > now.
          Expiry is time-derived; nothing sweeps expired rows.
    members
        - role: 'creator' (exactly one per room) or 'member'
        - last_seen_at: refreshed on every successful session verification
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gameswipe.clock import ensure_utc, utcnow
from gameswipe.database import Base

ROLE_CREATOR = "creator"
ROLE_MEMBER = "member"


class Room(Base):
    """
    A short-lived, code-addressable group container.

    Lifecycle:
        Active → Deleted  (DELETE /rooms/{id} by the creator; terminal)
        Active → Expired  (expires_at passes; terminal, never written)
    """

    __tablename__ = "rooms"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    code: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="Human-typable join code (uppercase, unambiguous alphabet)",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="After this instant the room is Gone",
    )

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
        comment="Soft-delete marker; NULL while the room has not been deleted",
    )

    members: Mapped[List["Member"]] = relationship(
        back_populates="room",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("code", name="uq_rooms_code"),
    )

    def is_live(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return self.deleted_at is None and ensure_utc(self.expires_at) > now

    def __repr__(self) -> str:
        return f"<Room(id={self.id}, code='{self.code}', deleted_at={self.deleted_at})>"


class Member(Base):
    """A participant in a Room: its creator or a joiner."""

    __tablename__ = "members"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    room_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=False,
    )

    role: Mapped[str] = mapped_column(String(16), nullable=False, default=ROLE_MEMBER)

    display_name: Mapped[Optional[str]] = mapped_column(String(48), nullable=True)

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    last_seen_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    room: Mapped[Room] = relationship(back_populates="members")

    __table_args__ = (
        CheckConstraint("role IN ('creator', 'member')", name="ck_members_role"),
        Index("idx_members_room_id", "room_id"),
    )

    @property
    def is_creator(self) -> bool:
        return self.role == ROLE_CREATOR

    def __repr__(self) -> str:
        return f"<Member(id={self.id}, room_id={self.room_id}, role='{self.role}')>"
