"""
GameSwipe Backend: Session Service Tests
========================================

What we test:
    ✅ Tokens are hashed with HMAC under the server secret; raw tokens never stored
    ✅ verify() resolves live sessions and refreshes last_seen_at
    ✅ verify() rejects unknown, expired, revoked and oversized tokens alike
    ✅ revoke_room() spares the kept member only
"""

from datetime import timedelta

import pytest
from sqlalchemy import select, update

from gameswipe.clock import ensure_utc, utcnow
from gameswipe.exceptions import UnauthenticatedError
from gameswipe.models import Member, MemberSession, Room
from gameswipe.models.room import ROLE_CREATOR, ROLE_MEMBER
from gameswipe.services.session_service import MAX_TOKEN_LENGTH, SessionService, hash_token, new_session_token


class TestTokenHashing:

    def test_hash_is_deterministic_hex_sha256(self):
        digest = hash_token("token", "secret-secret-secret")
        assert digest == hash_token("token", "secret-secret-secret")
        assert len(digest) == 64
        int(digest, 16)

    def test_hash_depends_on_secret(self):
        assert hash_token("token", "secret-one-0123456") != hash_token("token", "secret-two-0123456")

    def test_new_tokens_are_unique_and_urlsafe(self):
        tokens = {new_session_token() for _ in range(20)}
        assert len(tokens) == 20
        assert all(len(t) == 43 and "+" not in t and "/" not in t for t in tokens)


async def _room_with_members(db, count: int = 2):
    room = Room(code="TESTAA", expires_at=utcnow() + timedelta(hours=1))
    db.add(room)
    await db.flush()
    members = [
        Member(room_id=room.id, role=ROLE_CREATOR if i == 0 else ROLE_MEMBER)
        for i in range(count)
    ]
    db.add_all(members)
    await db.flush()
    return room, members


class TestVerify:

    @pytest.mark.asyncio
    async def test_issue_stores_only_the_hash(self, app, settings):
        sessions = SessionService(settings)
        async with app.state.session_factory() as db:
            _, (member, _) = await _room_with_members(db)
            token = await sessions.issue(db, member.id)

            stored = (await db.execute(select(MemberSession))).scalars().all()
            assert [s.token_hash for s in stored] == [sessions.hash(token)]
            assert token not in stored[0].token_hash

            expires = ensure_utc(stored[0].expires_at)
            assert expires - utcnow() > timedelta(days=settings.session_ttl_days - 1)

    @pytest.mark.asyncio
    async def test_verify_returns_member_and_touches_last_seen(self, app, settings):
        sessions = SessionService(settings)
        async with app.state.session_factory() as db:
            _, (member, _) = await _room_with_members(db)
            member.last_seen_at = utcnow() - timedelta(days=1)
            token = await sessions.issue(db, member.id)

            resolved = await sessions.verify(db, token)

            assert resolved.id == member.id
            assert ensure_utc(resolved.last_seen_at) > utcnow() - timedelta(minutes=1)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", [None, "", "unknown-token", "x" * (MAX_TOKEN_LENGTH + 1)])
    async def test_verify_rejects_bad_tokens(self, app, settings, token):
        sessions = SessionService(settings)
        async with app.state.session_factory() as db:
            with pytest.raises(UnauthenticatedError) as exc_info:
                await sessions.verify(db, token)
        assert exc_info.value.message == "Invalid or expired session"

    @pytest.mark.asyncio
    async def test_verify_rejects_expired_and_revoked(self, app, settings):
        sessions = SessionService(settings)
        async with app.state.session_factory() as db:
            _, (first, second) = await _room_with_members(db)
            expired = await sessions.issue(db, first.id)
            revoked = await sessions.issue(db, second.id)
            await db.execute(
                update(MemberSession)
                .where(MemberSession.token_hash == sessions.hash(expired))
                .values(expires_at=utcnow() - timedelta(seconds=1))
            )
            await db.execute(
                update(MemberSession)
                .where(MemberSession.token_hash == sessions.hash(revoked))
                .values(revoked_at=utcnow())
            )

            for token in (expired, revoked):
                with pytest.raises(UnauthenticatedError):
                    await sessions.verify(db, token)

    @pytest.mark.asyncio
    async def test_token_from_another_secret_is_rejected(self, app, settings, settings_factory):
        issuer = SessionService(settings)
        verifier = SessionService(settings_factory(session_secret="a-completely-different-secret"))
        async with app.state.session_factory() as db:
            _, (member, _) = await _room_with_members(db)
            token = await issuer.issue(db, member.id)

            with pytest.raises(UnauthenticatedError):
                await verifier.verify(db, token)


class TestRevokeRoom:

    @pytest.mark.asyncio
    async def test_revoke_room_spares_kept_member(self, app, settings):
        sessions = SessionService(settings)
        async with app.state.session_factory() as db:
            room, (creator, joiner) = await _room_with_members(db)
            creator_token = await sessions.issue(db, creator.id)
            joiner_token = await sessions.issue(db, joiner.id)

            revoked = await sessions.revoke_room(db, room.id, keep_member_id=creator.id)

            assert revoked == 1
            assert (await sessions.verify(db, creator_token)).id == creator.id
            with pytest.raises(UnauthenticatedError):
                await sessions.verify(db, joiner_token)

    @pytest.mark.asyncio
    async def test_revoke_room_leaves_other_rooms_alone(self, app, settings):
        sessions = SessionService(settings)
        async with app.state.session_factory() as db:
            room, (creator, _) = await _room_with_members(db)
            other = Room(code="OTHERB", expires_at=utcnow() + timedelta(hours=1))
            db.add(other)
            await db.flush()
            outsider = Member(room_id=other.id, role=ROLE_CREATOR)
            db.add(outsider)
            await db.flush()
            outsider_token = await sessions.issue(db, outsider.id)
            await sessions.issue(db, creator.id)

            assert await sessions.revoke_room(db, room.id) == 1
            assert (await sessions.verify(db, outsider_token)).id == outsider.id
