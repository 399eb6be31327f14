"""
GameSwipe Backend: Room Code Generator
======================================

Codes are read aloud and typed by hand, so the alphabet drops the visually
confusable characters I, O, 0 and 1. 32 symbols at the default length of 6
give ~1.07e9 codes; collisions are handled by the room service's retry.
"""

import secrets

ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def generate_room_code(length: int = 6) -> str:
    """Return a random code of `length` characters from ROOM_CODE_ALPHABET."""
    if length < 1:
        raise ValueError("Room code length must be positive")
    return "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(length))


def normalize_room_code(code: str) -> str:
    """Join codes are case-insensitive; storage is uppercase."""
    return code.strip().upper()
