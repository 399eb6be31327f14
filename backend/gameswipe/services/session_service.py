"""
GameSwipe Backend: Session Issuer
=================================

What:  Mints opaque bearer tokens, stores their keyed hash, verifies presented
       tokens and revokes a room's sessions.
How:   token = 32 random bytes (urlsafe base64); stored hash =
       HMAC-SHA256(SESSION_SECRET, token) as hex. The raw token exists only in
       the response that issued it.

Verification contract:
    verify(token) returns the owning Member, or raises UnauthenticatedError.
    Malformed, unknown, expired and revoked tokens are indistinguishable to
    the caller: same exception, same message.
"""

import hashlib
import hmac
import logging
import secrets
import uuid
from datetime import timedelta
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gameswipe.clock import utcnow
from gameswipe.config import Settings
from gameswipe.exceptions import UnauthenticatedError
from gameswipe.models.room import Member
from gameswipe.models.session import MemberSession

logger = logging.getLogger(__name__)

# Upper bound on accepted token length; real tokens are 43 characters.
MAX_TOKEN_LENGTH = 256


def new_session_token() -> str:
    return secrets.token_urlsafe(32)


def hash_token(token: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), token.encode("utf-8"), hashlib.sha256).hexdigest()


class SessionService:
    """Issues, verifies and revokes member sessions."""

    def __init__(self, settings: Settings):
        self._secret = settings.session_secret
        self._ttl = timedelta(days=settings.session_ttl_days)

    def hash(self, token: str) -> str:
        return hash_token(token, self._secret)

    async def issue(self, db: AsyncSession, member_id: uuid.UUID) -> str:
        """
        Persist a new session for `member_id` and return its raw token.

        The row is flushed, not committed: it becomes durable together with
        the rest of the request transaction.
        """
        token = new_session_token()
        db.add(
            MemberSession(
                member_id=member_id,
                token_hash=self.hash(token),
                expires_at=utcnow() + self._ttl,
            )
        )
        await db.flush()
        logger.info("Issued session for member %s", member_id)
        return token

    async def verify(self, db: AsyncSession, token: Optional[str]) -> Member:
        """
        Resolve a presented token to its Member, refreshing last_seen_at.

        Raises:
            UnauthenticatedError: for every failure cause, uniformly.
        """
        if not token or len(token) > MAX_TOKEN_LENGTH:
            raise UnauthenticatedError()

        now = utcnow()
        result = await db.execute(
            select(Member)
            .join(MemberSession, MemberSession.member_id == Member.id)
            .where(
                MemberSession.token_hash == self.hash(token),
                MemberSession.revoked_at.is_(None),
                MemberSession.expires_at > now,
            )
        )
        member = result.scalar_one_or_none()
        if member is None:
            raise UnauthenticatedError()

        member.last_seen_at = now
        await db.flush()
        return member

    async def revoke_room(
        self,
        db: AsyncSession,
        room_id: uuid.UUID,
        keep_member_id: Optional[uuid.UUID] = None,
    ) -> int:
        """
        Revoke every live session of every member of `room_id`.

        `keep_member_id` exempts one member (the deleting creator) so that the
        caller can still observe the room as Gone.

        Returns:
            Number of sessions revoked.
        """
        member_ids = select(Member.id).where(Member.room_id == room_id)
        if keep_member_id is not None:
            member_ids = member_ids.where(Member.id != keep_member_id)

        result = await db.execute(
            update(MemberSession)
            .where(
                MemberSession.member_id.in_(member_ids),
                MemberSession.revoked_at.is_(None),
            )
            .values(revoked_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
