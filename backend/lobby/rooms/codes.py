"""Short human-enterable room codes.

Codes are drawn from a 32-symbol alphabet without the look-alike characters
I, O, 0 and 1. There is no collision check: with 32**5 (about 33.5M) codes a
fresh code is only "probably unique" among rooms on the same channel.
"""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import random

ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 5

_system_rng = secrets.SystemRandom()


def generate_room_code(rng: random.Random | None = None) -> str:
    """Draw ROOM_CODE_LENGTH characters independently and uniformly from the alphabet."""
    source = rng or _system_rng
    return "".join(source.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))


def normalize_room_code(raw: str) -> str:
    return raw.strip().upper()


def is_room_code(value: str) -> bool:
    return len(value) == ROOM_CODE_LENGTH and all(c in ROOM_CODE_ALPHABET for c in value)
