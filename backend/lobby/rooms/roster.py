"""Host-side roster authority for a single room."""

from __future__ import annotations

import random
import uuid
from typing import TYPE_CHECKING

import structlog

from lobby.rooms.models import Player

if TYPE_CHECKING:
    from lobby.rooms.models import Room

logger = structlog.get_logger()

NAME_SUFFIX_RANGE = 100
INSUFFICIENT_PLAYERS = "insufficient_players"


class RosterManager:
    """Owns the canonical player list of a room.

    Purely state management: no bus I/O. The host session calls admit() for
    each join request addressed to this room and publishes the acceptance
    itself.
    """

    def __init__(self, room: Room, rng: random.Random | None = None) -> None:
        self._room = room
        self._rng = rng or random.Random()

    @property
    def room(self) -> Room:
        return self._room

    @property
    def players(self) -> tuple[Player, ...]:
        return tuple(self._room.roster)

    @property
    def player_count(self) -> int:
        return self._room.player_count

    def has_name(self, name: str) -> bool:
        return any(p.name == name for p in self._room.roster)

    def admit(self, requested_name: str, avatar: str) -> Player:
        """Append a new player and return it.

        A name already on the roster (exact match) gets a numeric suffix
        "<name> <n>"; the stored name is authoritative from then on. Repeated
        calls with the same arguments create distinct players.
        """
        final_name = requested_name
        if self.has_name(requested_name):
            final_name = self._disambiguate(requested_name)

        player = Player(id=str(uuid.uuid4()), name=final_name, avatar=avatar)
        self._room.roster.append(player)
        logger.info(
            "player admitted",
            room_code=self._room.code,
            player=player.info().model_dump(),
            renamed=final_name != requested_name,
            player_count=self._room.player_count,
        )
        return player

    def start_game(self, min_players: int) -> tuple[Player, ...] | str:
        """Freeze the roster for the game phase. Returns the roster or an error code."""
        if self._room.player_count < min_players:
            return INSUFFICIENT_PLAYERS
        return self.players

    def _disambiguate(self, name: str) -> str:
        taken = self._room.names()
        free = [n for n in range(NAME_SUFFIX_RANGE) if f"{name} {n}" not in taken]
        if free:
            return f"{name} {self._rng.choice(free)}"
        n = NAME_SUFFIX_RANGE
        while f"{name} {n}" in taken:
            n += 1
        return f"{name} {n}"
