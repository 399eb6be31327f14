"""
GameSwipe Backend: Steam Identity and Library Schemas
=====================================================

What:  Contracts for /steam/identity and /steam/library*.
Why:   A malformed SteamID64 is rejected here, before the service makes any
       upstream call or database write.
How:   STEAMID64_PATTERN is ASCII-only. Python and pydantic both let a
       digit class match any Unicode digit, so the pattern spells out [0-9].
       The service layer compiles the same pattern and checks again for
       callers that skip the request model.

Wire shape:
    OwnedGame keeps upstream's snake_case `playtime_forever` internally and
    serialises it as `playtimeForever`, like every other field.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from gameswipe.schemas.common import CamelModel

STEAMID64_PATTERN = r"^[0-9]{17}$"

Provider = Literal["manual", "openid"]


class SteamIdentityRequest(CamelModel):
    steamid64: str = Field(
        pattern=STEAMID64_PATTERN,
        description="17-digit SteamID64",
        examples=["76561198000000000"],
    )


class SteamIdentityResponse(CamelModel):
    steamid64: str
    verified: bool
    provider: Provider


class OwnedGame(CamelModel):
    appid: int
    playtime_forever: Optional[int] = Field(default=None, description="Minutes played, all time")


class LibrarySyncResponse(CamelModel):
    steamid64: str
    game_count: int = Field(ge=0)
    fetched_at: datetime


class LibraryResponse(LibrarySyncResponse):
    games: List[OwnedGame]
