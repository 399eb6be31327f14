"""
GameSwipe Backend: Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions, each bound to an HTTP status and a
       machine-readable error code.
How:   Services raise these; a single handler registered in main.py renders
       every GameSwipeError as the error envelope
       {"error": {"code", "message", "details"}}. Anything that is not a
       GameSwipeError is collapsed to 500 INTERNAL_ERROR with no detail.

Exception Hierarchy:
    GameSwipeError (base)                         → 500 INTERNAL_ERROR
    ├── InvalidRequestError                       → 400 INVALID_REQUEST
    ├── UnauthenticatedError                      → 401 UNAUTHORISED
    ├── ForbiddenError                            → 403 FORBIDDEN
    ├── RoomNotFoundError                         → 404 ROOM_NOT_FOUND
    ├── RoomGoneError                             → 410 ROOM_GONE
    ├── RateLimitExceededError                    → 429 RATE_LIMITED
    ├── InternalError                             → 500 INTERNAL_ERROR
    │   └── RoomCodeAllocationError               → 500 INTERNAL_ERROR
    ├── SteamIdentityNotFoundError                → 404 STEAM_IDENTITY_NOT_FOUND
    ├── SteamAccountNotFoundError                 → 404 STEAM_ACCOUNT_NOT_FOUND
    ├── SteamLibraryNotFoundError                 → 404 STEAM_LIBRARY_NOT_FOUND
    ├── SteamGamesNotVisibleError                 → 403 STEAM_GAMES_NOT_VISIBLE
    └── SteamUpstreamError                        → 502 STEAM_UPSTREAM_ERROR
"""

from typing import Any, Optional


class GameSwipeError(Exception):
    """
    Base exception for all GameSwipe application errors.

    Attributes:
        status_code: HTTP status rendered by the exception handler
        code:        Machine-readable error code (stable API contract)
        message:     Client-facing description
        details:     Optional structured context, returned verbatim to the client
    """

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "Unexpected server error"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_envelope(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


class InvalidRequestError(GameSwipeError):
    """Client payload failed schema or format validation."""

    status_code = 400
    code = "INVALID_REQUEST"
    default_message = "Invalid request body"


class UnauthenticatedError(GameSwipeError):
    """
    Missing, malformed, unknown, expired or revoked session.

    Every one of those causes produces this exact error with this exact
    message, so a caller cannot tell which case occurred.
    """

    status_code = 401
    code = "UNAUTHORISED"
    default_message = "Invalid or expired session"


class ForbiddenError(GameSwipeError):
    """Authenticated, but the member's role does not allow the operation."""

    status_code = 403
    code = "FORBIDDEN"
    default_message = "You are not allowed to perform this action"


class RoomNotFoundError(GameSwipeError):
    """No room was ever created with the given code or id."""

    status_code = 404
    code = "ROOM_NOT_FOUND"
    default_message = "Room not found"


class RoomGoneError(GameSwipeError):
    """The room existed but has been deleted or has expired."""

    status_code = 410
    code = "ROOM_GONE"
    default_message = "Room has ended"


class RateLimitExceededError(GameSwipeError):
    """
    Raised when a client exceeds the join rate limit.

    The Retry-After header is derived from `retry_after`.
    """

    status_code = 429
    code = "RATE_LIMITED"

    def __init__(self, retry_after: int = 60):
        super().__init__(
            message=f"Too many requests. Please wait {retry_after} seconds before retrying.",
            details={"retryAfter": retry_after},
        )
        self.retry_after = retry_after


class InternalError(GameSwipeError):
    """Invariant violation, e.g. an upsert that should return a row did not."""


class RoomCodeAllocationError(InternalError):
    """Every room-code attempt collided with an existing code."""

    default_message = "Failed to allocate unique room code"


class SteamIdentityNotFoundError(GameSwipeError):
    status_code = 404
    code = "STEAM_IDENTITY_NOT_FOUND"
    default_message = "No Steam identity linked for this member"


class SteamAccountNotFoundError(GameSwipeError):
    status_code = 404
    code = "STEAM_ACCOUNT_NOT_FOUND"
    default_message = "Steam account not found for this steamid64"


class SteamLibraryNotFoundError(GameSwipeError):
    status_code = 404
    code = "STEAM_LIBRARY_NOT_FOUND"
    default_message = "No Steam library has been synced for this member"


class SteamGamesNotVisibleError(GameSwipeError):
    """
    Upstream returned no owned games.

    Steam answers with an empty or absent list both for private profiles and
    for accounts that own nothing; the two cannot be told apart, so this is
    reported as "not readable" and the user is asked to make the profile
    public.
    """

    status_code = 403
    code = "STEAM_GAMES_NOT_VISIBLE"
    default_message = "Could not read owned games. Ensure Steam profile + game details are public."


class SteamUpstreamError(GameSwipeError):
    """Steam Web API unreachable or answered with a non-2xx status."""

    status_code = 502
    code = "STEAM_UPSTREAM_ERROR"
    default_message = "Steam API error"
