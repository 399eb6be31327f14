"""
GameSwipe Backend: Member Session Model
========================================

What:  ORM model for the `member_sessions` table.

The raw bearer token is never stored. `token_hash` holds the hex HMAC-SHA256
of the token under the server's SESSION_SECRET, so a presented token can only
be compared by re-hashing it.

A session is valid iff revoked_at IS NULL and expires_at > now. Rows are
revoked (never deleted) when their room is deleted.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from gameswipe.clock import utcnow
from gameswipe.database import Base


class MemberSession(Base):
    __tablename__ = "member_sessions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
    )

    token_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    revoked_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    __table_args__ = (
        UniqueConstraint("token_hash", name="uq_member_sessions_token_hash"),
        Index("idx_member_sessions_member_id", "member_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<MemberSession(id={self.id}, member_id={self.member_id}, "
            f"expires_at='{self.expires_at}', revoked_at={self.revoked_at})>"
        )
