"""Room Codes — generation and normalization of 6-character room identifiers.

Invariants:
    - A normalized code is exactly ROOM_CODE_LENGTH chars from ROOM_CODE_ALPHABET
    - normalize_room_code is applied at every entry point (API, registry, roster)
    - generate_room_code never checks uniqueness (caller retries against storage)

Design Decisions:
    - rng injected: tests pin the sequence without monkeypatching the random module
    - 36^6 (~2.2e9) codes: collisions are rare but handled by the registry retry loop
"""

import random
import string

from wolfgame.core.domain_types import RoomCode

ROOM_CODE_LENGTH = 6
ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_room_code(rng: random.Random | None = None) -> RoomCode:
    """Random 6-char code from [A-Z0-9], e.g. 'K7Q2ZD'."""
    rng = rng or random
    return RoomCode("".join(rng.choices(ROOM_CODE_ALPHABET, k=ROOM_CODE_LENGTH)))


def normalize_room_code(raw: str) -> RoomCode:
    """Strip whitespace and upper-case. Does not validate."""
    return RoomCode(raw.strip().upper())


def is_valid_room_code(code: str) -> bool:
    return (
        len(code) == ROOM_CODE_LENGTH
        and all(ch in ROOM_CODE_ALPHABET for ch in code)
    )
