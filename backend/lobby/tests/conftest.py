"""Shared fixtures for lobby tests."""

from __future__ import annotations

import random
from dataclasses import dataclass, field

import pytest

from lobby.bus.addressing import RoomMessenger
from lobby.bus.local import ChannelHub, LocalBus
from lobby.rooms.models import Personality, PlayerInfo
from lobby.server.settings import LobbySettings
from lobby.session.machine import LobbyStateMachine


@dataclass
class Handoffs:
    """Records calls the lobby makes to the game phase."""

    host_starts: list[tuple[tuple[PlayerInfo, ...], Personality, bool]] = field(default_factory=list)
    guest_starts: list[str] = field(default_factory=list)

    def on_start_game(self, players: tuple[PlayerInfo, ...], personality: Personality, *, is_host: bool) -> None:
        self.host_starts.append((players, personality, is_host))

    def on_guest_start(self, room_code: str) -> None:
        self.guest_starts.append(room_code)


@pytest.fixture
def settings() -> LobbySettings:
    return LobbySettings(min_players=3)


@pytest.fixture
def hub() -> ChannelHub:
    return ChannelHub()


@pytest.fixture
def bus(hub: ChannelHub, settings: LobbySettings) -> LocalBus:
    return hub.channel(settings.channel_name)


@pytest.fixture
def make_device(bus: LocalBus, settings: LobbySettings):
    """Build a LobbyStateMachine on the shared bus, one per simulated device."""

    def _make(
        *,
        code: str | None = None,
        lobby_settings: LobbySettings | None = None,
        seed: int = 0,
    ) -> tuple[LobbyStateMachine, Handoffs]:
        handoffs = Handoffs()
        kwargs = {}
        if code is not None:
            kwargs["code_generator"] = lambda: code
        machine = LobbyStateMachine(
            RoomMessenger(bus),
            lobby_settings or settings,
            handoffs.on_start_game,
            on_guest_start=handoffs.on_guest_start,
            rng=random.Random(seed),
            **kwargs,
        )
        return machine, handoffs

    return _make
