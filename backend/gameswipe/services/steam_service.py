"""
GameSwipe Backend: Steam Identity and Library Services
======================================================

What:  Link a member to a SteamID64 and cache that account's owned games.
How:   Every upstream call happens before the write that depends on it, so
       an upstream failure leaves the database untouched. Writes are a single
       INSERT ... ON CONFLICT (member_id) DO UPDATE, issued through the
       dialect-specific insert construct of the bound engine.
Who:   Called by routes/steam.py.
When:  PUT /steam/identity, POST /steam/library/sync and the two GETs.

Visibility rule:
    GetOwnedGames answers a private profile with an empty "response" object,
    which is indistinguishable from an account that owns nothing. Both are
    reported as 403 STEAM_GAMES_NOT_VISIBLE and the existing cache is kept.

Relink rule:
    A manual link is never verified. Relinking always writes
    verified=false, provider="manual", whatever the previous row held.
"""

import logging
import re
import uuid
from typing import Any, Dict

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from gameswipe.clock import ensure_utc, utcnow
from gameswipe.exceptions import (
    InternalError,
    InvalidRequestError,
    SteamAccountNotFoundError,
    SteamGamesNotVisibleError,
    SteamIdentityNotFoundError,
    SteamLibraryNotFoundError,
)
from gameswipe.models.steam import PROVIDER_MANUAL, SteamIdentity, SteamOwnedGames
from gameswipe.schemas.steam import (
    STEAMID64_PATTERN,
    LibraryResponse,
    LibrarySyncResponse,
    OwnedGame,
    SteamIdentityResponse,
)
from gameswipe.services.steam_client import SteamClient

logger = logging.getLogger(__name__)

_STEAMID64_RE = re.compile(STEAMID64_PATTERN)


def _upsert(db: AsyncSession, model, values: Dict[str, Any], update_columns):
    """
    Build INSERT ... ON CONFLICT (member_id) DO UPDATE for `model`.

    Only PostgreSQL and SQLite are supported; both spell the clause the same
    way through their dialect insert constructs.
    """
    dialect = db.bind.dialect.name
    if dialect == "postgresql":
        insert = postgresql.insert
    elif dialect == "sqlite":
        insert = sqlite.insert
    else:
        raise InternalError(f"Upsert is not supported on dialect {dialect}")

    stmt = insert(model).values(**values)
    return stmt.on_conflict_do_update(
        index_elements=["member_id"],
        set_={col: getattr(stmt.excluded, col) for col in update_columns},
    )


class SteamIdentityService:
    """Links a member to a Steam account and reads the link back."""

    def __init__(self, client: SteamClient):
        self._client = client

    async def link(self, db: AsyncSession, member_id: uuid.UUID, steamid64: str) -> SteamIdentityResponse:
        """
        Link (or relink) `member_id` to `steamid64`.

        The format check runs before any upstream or database call. A manual
        link is never verified, so relinking always resets verified/provider.

        Raises:
            InvalidRequestError:       steamid64 is not exactly 17 digits
            SteamAccountNotFoundError: upstream knows no such account
            SteamUpstreamError:        upstream unreachable or non-2xx
            InternalError:             the upsert returned no row
        """
        if not isinstance(steamid64, str) or not _STEAMID64_RE.match(steamid64):
            raise InvalidRequestError("steamid64 must be a 17 digit string")

        if not await self._client.account_exists(steamid64):
            logger.info("Steam account %s not found for member %s", steamid64, member_id)
            raise SteamAccountNotFoundError()

        now = utcnow()
        stmt = _upsert(
            db,
            SteamIdentity,
            {
                "member_id": member_id,
                "steamid64": steamid64,
                "verified": False,
                "provider": PROVIDER_MANUAL,
                "linked_at": now,
                "updated_at": now,
                "last_verified_at": now,
            },
            ("steamid64", "verified", "provider", "updated_at", "last_verified_at"),
        ).returning(SteamIdentity.steamid64, SteamIdentity.verified, SteamIdentity.provider)

        row = (await db.execute(stmt)).one_or_none()
        if row is None:
            raise InternalError("Steam identity upsert returned no row")

        logger.info("Member %s linked Steam account %s", member_id, steamid64)
        return SteamIdentityResponse(steamid64=row.steamid64, verified=row.verified, provider=row.provider)

    async def get(self, db: AsyncSession, member_id: uuid.UUID) -> SteamIdentityResponse:
        identity = await _load_identity(db, member_id)
        return SteamIdentityResponse(
            steamid64=identity.steamid64,
            verified=identity.verified,
            provider=identity.provider,
        )


class SteamLibraryService:
    """
    Owned-games cache for the member's linked Steam account.

    One cache row per member; each successful sync replaces it entirely.
    """

    def __init__(self, client: SteamClient):
        self._client = client

    async def sync(self, db: AsyncSession, member_id: uuid.UUID) -> LibrarySyncResponse:
        """
        Fetch owned games upstream and replace the member's cache entry.

        Raises:
            SteamIdentityNotFoundError: no linked identity
            SteamGamesNotVisibleError:  upstream list empty or absent (no write)
            SteamUpstreamError:         upstream unreachable or non-2xx
        """
        identity = await _load_identity(db, member_id)
        owned = await self._client.fetch_owned_games(identity.steamid64)

        if not owned.games:
            logger.info("Owned games not visible for Steam account %s", identity.steamid64)
            raise SteamGamesNotVisibleError()

        now = utcnow()
        stmt = _upsert(
            db,
            SteamOwnedGames,
            {
                "member_id": member_id,
                "steamid64": identity.steamid64,
                "game_count": owned.game_count,
                "games": owned.games,
                "fetched_at": now,
                "updated_at": now,
            },
            ("steamid64", "game_count", "games", "fetched_at", "updated_at"),
        )
        await db.execute(stmt)

        logger.info("Synced %d games for member %s", owned.game_count, member_id)
        return LibrarySyncResponse(steamid64=identity.steamid64, game_count=owned.game_count, fetched_at=now)

    async def get(self, db: AsyncSession, member_id: uuid.UUID) -> LibraryResponse:
        await _load_identity(db, member_id)
        result = await db.execute(select(SteamOwnedGames).where(SteamOwnedGames.member_id == member_id))
        cached = result.scalar_one_or_none()
        if cached is None:
            raise SteamLibraryNotFoundError()

        return LibraryResponse(
            steamid64=cached.steamid64,
            game_count=cached.game_count,
            fetched_at=ensure_utc(cached.fetched_at),
            games=[OwnedGame.model_validate(g) for g in cached.games or []],
        )


async def _load_identity(db: AsyncSession, member_id: uuid.UUID) -> SteamIdentity:
    result = await db.execute(select(SteamIdentity).where(SteamIdentity.member_id == member_id))
    identity = result.scalar_one_or_none()
    if identity is None:
        raise SteamIdentityNotFoundError()
    return identity
