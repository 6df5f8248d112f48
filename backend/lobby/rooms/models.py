"""Room and player models for the hosted lobby."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    import random


class Personality(str, Enum):
    """AI-judge behaviour selected by the host before the game starts."""

    ROASTER = "ROASTER"
    GRANDMA = "GRANDMA"
    GEN_Z = "GEN_Z"


AVATAR_PALETTE: tuple[str, ...] = (
    "pink",
    "rose",
    "fuchsia",
    "purple",
    "violet",
    "indigo",
    "blue",
    "cyan",
)


def random_avatar(rng: random.Random) -> str:
    return rng.choice(AVATAR_PALETTE)


class PlayerInfo(BaseModel):
    """Player view handed to the game phase and written to logs."""

    id: str
    name: str
    score: int
    avatar: str


@dataclass
class Player:
    """Player admitted to a room. Created and owned by the host's roster."""

    id: str
    name: str
    avatar: str
    score: int = 0

    def info(self) -> PlayerInfo:
        return PlayerInfo(id=self.id, name=self.name, score=self.score, avatar=self.avatar)


@dataclass
class Room:
    """Lobby session that exists only on the hosting device.

    The roster keeps insertion order, which is the only ordering guarantee
    for players. admission_lock serialises admit + acceptance so a second
    join request is always checked against the roster the first one left.
    """

    code: str
    personality: Personality = Personality.ROASTER
    roster: list[Player] = field(default_factory=list)
    created_at: float = field(default_factory=time.monotonic)
    admission_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def player_count(self) -> int:
        return len(self.roster)

    @property
    def is_empty(self) -> bool:
        return not self.roster

    @property
    def age(self) -> float:
        """Seconds since the host opened the room."""
        return time.monotonic() - self.created_at

    def names(self) -> set[str]:
        return {p.name for p in self.roster}
