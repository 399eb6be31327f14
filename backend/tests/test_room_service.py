"""
GameSwipe Backend: Room Service Tests
=====================================

What:  RoomService behaviour that is awkward to reach over HTTP.
How:   Real SQLite session from the app's session factory; code generation
       is monkeypatched to force collisions.

What we test:
    ✅ Colliding codes are retried inside SAVEPOINTs until one is free
    ✅ Exhausting every attempt raises RoomCodeAllocationError, leaves no rows
    ✅ Only the room's creator may delete it
    ✅ Blank display names are stored as NULL
"""

import uuid

import pytest
from sqlalchemy import func, select

from gameswipe.exceptions import ForbiddenError, RoomCodeAllocationError
from gameswipe.models import Member, MemberSession, Room
from gameswipe.services import room_service as room_service_module
from gameswipe.services.room_service import ROOM_CODE_MAX_ATTEMPTS, RoomService
from gameswipe.services.session_service import SessionService


async def _count(session, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


@pytest.fixture
def service(settings) -> RoomService:
    return RoomService(settings, SessionService(settings))


class TestRoomCodeAllocation:

    @pytest.mark.asyncio
    async def test_collisions_are_retried(self, app, service, monkeypatch):
        """Two taken codes, then a free one: creation succeeds with the free code."""
        async with app.state.session_factory() as db:
            existing, _ = await service.create_room(db)
            await db.commit()

        draws = iter([existing.room.code, existing.room.code, "FRESH2"])
        monkeypatch.setattr(room_service_module, "generate_room_code", lambda length: next(draws))

        async with app.state.session_factory() as db:
            created, token = await service.create_room(db)
            await db.commit()

        assert created.room.code == "FRESH2"
        assert token

        async with app.state.session_factory() as db:
            assert await _count(db, Room) == 2
            assert await _count(db, Member) == 2
            assert await _count(db, MemberSession) == 2

    @pytest.mark.asyncio
    async def test_exhausted_attempts_leave_no_rows(self, app, service, monkeypatch):
        async with app.state.session_factory() as db:
            existing, _ = await service.create_room(db)
            await db.commit()

        calls = []

        def always_taken(length):
            calls.append(length)
            return existing.room.code

        monkeypatch.setattr(room_service_module, "generate_room_code", always_taken)

        async with app.state.session_factory() as db:
            with pytest.raises(RoomCodeAllocationError):
                await service.create_room(db)
            await db.rollback()

        assert len(calls) == ROOM_CODE_MAX_ATTEMPTS

        async with app.state.session_factory() as db:
            assert await _count(db, Room) == 1
            assert await _count(db, Member) == 1
            assert await _count(db, MemberSession) == 1

    @pytest.mark.asyncio
    async def test_code_length_follows_settings(self, app, settings_factory):
        settings = settings_factory(room_code_length=9)
        service = RoomService(settings, SessionService(settings))

        async with app.state.session_factory() as db:
            created, _ = await service.create_room(db)
            await db.commit()

        assert len(created.room.code) == 9


class TestDeleteAuthorization:

    @pytest.mark.asyncio
    async def test_creator_of_another_room_cannot_delete(self, app, service):
        async with app.state.session_factory() as db:
            target, _ = await service.create_room(db)
            other, _ = await service.create_room(db)
            await db.commit()

        async with app.state.session_factory() as db:
            other_creator = await db.get(Member, other.member.id)
            with pytest.raises(ForbiddenError):
                await service.delete_room(db, target.room.id, other_creator)


class TestJoin:

    @pytest.mark.asyncio
    async def test_join_strips_blank_display_name(self, app, service):
        async with app.state.session_factory() as db:
            created, _ = await service.create_room(db)
            joined = await service.join_room(db, created.room.code.lower(), display_name="   ")
            await db.commit()

        assert joined.member.display_name is None
        assert joined.room.id == created.room.id
        assert isinstance(joined.member.id, uuid.UUID)
