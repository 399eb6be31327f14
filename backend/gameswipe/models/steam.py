"""
GameSwipe Backend: Steam Identity and Library Cache Models
===========================================================

What:  ORM models for `steam_identities` and `steam_owned_games`.

Both tables are keyed by member_id (one row per member at most) and are
written exclusively through INSERT ... ON CONFLICT (member_id) DO UPDATE, so
relinking or resyncing replaces the previous row instead of appending.

steam_owned_games is a point-in-time cache: `games` holds the list exactly as
returned upstream ({appid, playtime_forever} objects, upstream order).
"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from gameswipe.clock import utcnow
from gameswipe.database import Base

PROVIDER_MANUAL = "manual"
PROVIDER_OPENID = "openid"


class SteamIdentity(Base):
    """Link from a Member to a Steam account (SteamID64)."""

    __tablename__ = "steam_identities"

    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("members.id", ondelete="CASCADE"),
        primary_key=True,
    )

    steamid64: Mapped[str] = mapped_column(String(17), nullable=False)

    # Only a federated (OpenID) login may ever set verified=True.
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    provider: Mapped[str] = mapped_column(String(16), nullable=False, default=PROVIDER_MANUAL)

    linked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_verified_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("provider IN ('manual', 'openid')", name="ck_steam_identities_provider"),
    )

    def __repr__(self) -> str:
        return (
            f"<SteamIdentity(member_id={self.member_id}, steamid64='{self.steamid64}', "
            f"provider='{self.provider}')>"
        )


class SteamOwnedGames(Base):
    """Cached snapshot of a member's owned-games list."""

    __tablename__ = "steam_owned_games"

    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("members.id", ondelete="CASCADE"),
        primary_key=True,
    )

    steamid64: Mapped[str] = mapped_column(String(17), nullable=False)

    game_count: Mapped[int] = mapped_column(Integer, nullable=False)

    games: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    fetched_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<SteamOwnedGames(member_id={self.member_id}, game_count={self.game_count})>"
