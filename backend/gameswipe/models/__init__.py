"""
GameSwipe Backend: ORM Models
=============================

Importing this package registers every table on `Base.metadata`
(used by Alembic autogenerate and by the test-suite's `create_all`).
"""

from gameswipe.models.room import Member, Room
from gameswipe.models.session import MemberSession
from gameswipe.models.steam import SteamIdentity, SteamOwnedGames

__all__ = [
    "Member",
    "MemberSession",
    "Room",
    "SteamIdentity",
    "SteamOwnedGames",
]
