"""Per-device lobby state machine for hosts and guests.

One instance runs on every participating device. It owns the device's single
bus subscription: every mode change releases the previous handler before the
next one is installed, so at most one handler is live and it always reads the
current room code and roster.

    MENU --create_game--> HOST --start_game--> STARTED
    MENU --choose_join--> JOIN --submit_join--> WAITING --GAME_STARTED--> STARTED
    any mode except MENU --leave--> MENU
"""

from __future__ import annotations

import random
from enum import Enum
from typing import TYPE_CHECKING, Protocol

import structlog
from pydantic import ValidationError

from lobby.errors import InvalidJoinInputError, InvalidTransitionError
from lobby.rooms.codes import ROOM_CODE_LENGTH, generate_room_code, normalize_room_code
from lobby.rooms.messages import GameStartedMessage, JoinAcceptedMessage, JoinRequestMessage
from lobby.judges import describe
from lobby.rooms.models import Personality, Room, random_avatar
from lobby.rooms.roster import RosterManager

if TYPE_CHECKING:
    from collections.abc import Callable

    from lobby.bus.addressing import RoomHandler, RoomMessage, RoomMessenger
    from lobby.bus.protocol import BusSubscription
    from lobby.rooms.models import Player, PlayerInfo
    from lobby.server.settings import LobbySettings

logger = structlog.get_logger()


class LobbyMode(str, Enum):
    MENU = "MENU"
    HOST = "HOST"
    JOIN = "JOIN"
    WAITING = "WAITING"
    STARTED = "STARTED"


class StartGameHandoff(Protocol):
    def __call__(self, players: tuple[PlayerInfo, ...], personality: Personality, *, is_host: bool) -> None: ...


class LobbyStateMachine:
    """Drives one participant through the lobby.

    Host path: create_game() generates a room code and listens for
    JOIN_REQUEST addressed to it; start_game() hands the frozen roster to
    the game phase once min_players is reached.

    Guest path: choose_join() then submit_join() publishes a JOIN_REQUEST
    and moves to WAITING without waiting for an answer. There is no
    timeout: a request nobody answers leaves the guest waiting until they
    leave. GAME_STARTED for the submitted code is the only way forward.
    """

    def __init__(
        self,
        messenger: RoomMessenger,
        settings: LobbySettings,
        on_start_game: StartGameHandoff,
        *,
        on_guest_start: Callable[[str], None] | None = None,
        code_generator: Callable[[], str] = generate_room_code,
        rng: random.Random | None = None,
    ) -> None:
        self._messenger = messenger
        self._settings = settings
        self._on_start_game = on_start_game
        self._on_guest_start = on_guest_start
        self._code_generator = code_generator
        self._rng = rng or random.Random()
        self._mode = LobbyMode.MENU
        self._room: Room | None = None
        self._roster: RosterManager | None = None
        self._subscription: BusSubscription | None = None
        self._joined_code: str | None = None
        self.player_name: str | None = None
        self.warning: str | None = None

    @property
    def mode(self) -> LobbyMode:
        return self._mode

    @property
    def room(self) -> Room | None:
        return self._room

    @property
    def room_code(self) -> str | None:
        """Hosted room code for a host, submitted code for a guest."""
        if self._room is not None:
            return self._room.code
        return self._joined_code

    @property
    def players(self) -> tuple[Player, ...]:
        if self._roster is None:
            return ()
        return self._roster.players

    @property
    def personality(self) -> Personality | None:
        return self._room.personality if self._room is not None else None

    @property
    def subscription(self) -> BusSubscription | None:
        return self._subscription

    # --- host ---

    def create_game(self) -> str:
        self._require(LobbyMode.MENU, "create a game")
        code = self._code_generator()
        self._room = Room(code=code)
        self._roster = RosterManager(self._room, rng=self._rng)
        self._enter(LobbyMode.HOST, code, self._on_host_message)
        return code

    def select_personality(self, personality: Personality | str) -> None:
        self._require(LobbyMode.HOST, "select a judge")
        room = self._hosted_room()
        room.personality = Personality(personality)
        logger.info("judge selected", room_code=room.code, judge=describe(room.personality).name)

    async def start_game(self) -> bool:
        """Start the game for everyone in the room.

        Returns False and sets ``warning`` when the roster is below
        min_players; nothing is published and no state changes. Raises
        InvalidTransitionError when another start or a leave() released the
        room while this call waited for the admission lock.
        """
        self._require(LobbyMode.HOST, "start the game")
        room = self._hosted_room()
        min_players = self._settings.min_players

        async with room.admission_lock:
            if self._room is not room:
                raise InvalidTransitionError(operation="start the game", mode=self._mode.value)
            roster = self._hosted_roster()
            result = roster.start_game(min_players)
            if isinstance(result, str):
                self.warning = f"Need at least {min_players} players to start"
                logger.info(
                    "start rejected",
                    room_code=room.code,
                    reason=result,
                    player_count=roster.player_count,
                    min_players=min_players,
                )
                return False

            self.warning = None
            await self._messenger.send_to_room(
                room.code,
                GameStartedMessage(room_code=room.code),
                sender=self._subscription,
            )
            personality = room.personality
            self._teardown_room()
            self._enter(LobbyMode.STARTED)

        players = tuple(p.info() for p in result)
        logger.info(
            "game started",
            room_code=room.code,
            player_count=len(players),
            personality=personality,
            lobby_seconds=round(room.age, 1),
        )
        self._on_start_game(players, personality, is_host=True)
        return True

    async def _on_host_message(self, message: RoomMessage) -> None:
        room = self._room
        if self._mode is not LobbyMode.HOST or room is None or message.room_code != room.code:
            return
        if not isinstance(message, JoinRequestMessage):
            return

        async with room.admission_lock:
            # Room may have been torn down while this request waited for the lock.
            if self._room is not room or self._roster is None:
                return
            player = self._roster.admit(message.name, message.avatar)
            await self._messenger.send_to_room(
                room.code,
                JoinAcceptedMessage(player_id=player.id, room_code=room.code),
                sender=self._subscription,
            )

    # --- guest ---

    def choose_join(self) -> None:
        self._require(LobbyMode.MENU, "join a game")
        self._enter(LobbyMode.JOIN)

    async def submit_join(self, room_code: str, name: str) -> JoinRequestMessage:
        """Publish a join request and move to WAITING without an acknowledgment.

        Raises InvalidJoinInputError for an empty or overlong code or an
        empty name; in that case nothing is published and the mode stays JOIN.
        """
        self._require(LobbyMode.JOIN, "submit a join request")
        code = normalize_room_code(room_code)
        display_name = name.strip()
        if not code:
            raise InvalidJoinInputError(field="room_code", reason="must not be empty")
        if len(code) > ROOM_CODE_LENGTH:
            raise InvalidJoinInputError(field="room_code", reason=f"must be at most {ROOM_CODE_LENGTH} characters")
        if not display_name:
            raise InvalidJoinInputError(field="name", reason="must not be empty")

        try:
            message = JoinRequestMessage(name=display_name, room_code=code, avatar=random_avatar(self._rng))
        except ValidationError as e:
            raise InvalidJoinInputError(field="name", reason=e.errors()[0]["msg"]) from e

        self._joined_code = code
        self.player_name = display_name
        self._enter(LobbyMode.WAITING, code, self._on_guest_message)
        await self._messenger.send_to_room(code, message, sender=self._subscription)
        return message

    async def _on_guest_message(self, message: RoomMessage) -> None:
        code = self._joined_code
        if self._mode is not LobbyMode.WAITING or message.room_code != code:
            return
        if isinstance(message, JoinAcceptedMessage):
            # Acceptances are broadcast to the whole room; the guest cannot tell whose it is.
            logger.debug("join acceptance seen", room_code=code, player_id=message.player_id)
        elif isinstance(message, GameStartedMessage):
            self._enter(LobbyMode.STARTED)
            logger.info("guest leaving lobby", room_code=code, player_name=self.player_name)
            if self._on_guest_start is not None:
                self._on_guest_start(code)

    # --- shared ---

    def leave(self) -> None:
        """Return to MENU from any other mode.

        A host abandoning its room discards the roster; admitted guests are
        not told and keep waiting.
        """
        if self._mode is LobbyMode.MENU:
            return
        if self._room is not None:
            logger.info(
                "room abandoned",
                room_code=self._room.code,
                player_count=self._room.player_count,
                lobby_seconds=round(self._room.age, 1),
            )
        self._teardown_room()
        self._joined_code = None
        self.player_name = None
        self.warning = None
        self._enter(LobbyMode.MENU)

    def _enter(
        self,
        mode: LobbyMode,
        room_code: str | None = None,
        handler: RoomHandler | None = None,
    ) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        previous = self._mode
        self._mode = mode
        if handler is not None and room_code is not None:
            self._subscription = self._messenger.on_room_message(room_code, handler)
        logger.info("lobby mode changed", previous=previous, mode=mode, room_code=room_code)

    def _teardown_room(self) -> None:
        self._room = None
        self._roster = None

    def _hosted_room(self) -> Room:
        if self._room is None:  # pragma: no cover - HOST mode always has a room
            raise InvalidTransitionError(operation="use the room", mode=self._mode.value)
        return self._room

    def _hosted_roster(self) -> RosterManager:
        if self._roster is None:  # pragma: no cover - HOST mode always has a roster
            raise InvalidTransitionError(operation="use the roster", mode=self._mode.value)
        return self._roster

    def _require(self, mode: LobbyMode, operation: str) -> None:
        if self._mode is not mode:
            raise InvalidTransitionError(operation=operation, mode=self._mode.value)
