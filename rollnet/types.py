"""Public types shared by every session: players, events, error codes and callbacks."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

MAX_PLAYERS = 4
MAX_PREDICTION_FRAMES = 8
MAX_SPECTATORS = 32
SPECTATOR_INPUT_INTERVAL = 4

INVALID_HANDLE = -1

# Room for the address in a remote player description, terminator included.
_IP_ADDRESS_CAPACITY = 32

_log = logging.getLogger("rollnet")


class PlayerType(enum.IntEnum):
    """How the inputs of a player reach the session."""

    LOCAL = 0
    REMOTE = 1
    SPECTATOR = 2


class ErrorCode(enum.IntEnum):
    """Result codes a session can report."""

    OK = 0
    SUCCESS = 0
    GENERAL_FAILURE = -1
    INVALID_SESSION = 1
    INVALID_PLAYER_HANDLE = 2
    PLAYER_OUT_OF_RANGE = 3
    PREDICTION_THRESHOLD = 4
    UNSUPPORTED = 5
    NOT_SYNCHRONIZED = 6
    IN_ROLLBACK = 7
    INPUT_DROPPED = 8
    PLAYER_DISCONNECTED = 9
    TOO_MANY_SPECTATORS = 10
    INVALID_REQUEST = 11


def succeeded(code: int) -> bool:
    """Return True when ``code`` is the success code."""
    return code == ErrorCode.SUCCESS


class GGPOError(Exception):
    """Raised by a session operation that fails; ``code`` tells why."""

    def __init__(self, code: ErrorCode | int, message: Optional[str] = None) -> None:
        self.code = ErrorCode(code)
        self.message = message if message is not None else self.code.name.replace("_", " ").lower()
        super().__init__(f"{self.code.name}: {self.message}")


class EventCode(enum.IntEnum):
    """Kinds of asynchronous notification sent to ``on_event``."""

    CONNECTED_TO_PEER = 1000
    SYNCHRONIZING_WITH_PEER = 1001
    SYNCHRONIZED_WITH_PEER = 1002
    RUNNING = 1003
    DISCONNECTED_FROM_PEER = 1004
    TIMESYNC = 1005
    CONNECTION_INTERRUPTED = 1006
    CONNECTION_RESUMED = 1007


@dataclass
class Event:
    """A notification; only the fields that matter for ``code`` are meaningful."""

    code: EventCode
    player: Optional[int] = None
    count: int = 0
    total: int = 0
    frames_ahead: int = 0
    disconnect_timeout: int = 0


@dataclass
class Player:
    """Description of a player handed to ``Session.add_player``.

    ``player_num`` runs from 1 to the number of players.  For remote players
    and spectators, ``ip_address`` and ``port`` say where to send packets.
    """

    type: PlayerType
    player_num: int = 0
    ip_address: str = ""
    port: int = 0

    def __post_init__(self) -> None:
        self.type = PlayerType(self.type)
        if len(self.ip_address.encode("ascii")) >= _IP_ADDRESS_CAPACITY:
            raise ValueError(
                f"ip address {self.ip_address!r} is longer than "
                f"{_IP_ADDRESS_CAPACITY - 1} characters"
            )
        if not 0 <= self.port <= 0xFFFF:
            raise ValueError(f"port {self.port} is out of range")


@dataclass
class NetworkStats:
    """Connection quality figures for one remote player."""

    send_queue_len: int = 0
    recv_queue_len: int = 0
    ping: int = 0
    kbps_sent: int = 0
    local_frames_behind: int = 0
    remote_frames_behind: int = 0


def _begin_game(game: str) -> bool:
    """Note the start of ``game`` in the log."""
    _log.debug("beginning game %s", game)
    return True


def _log_game_state(filename: str, buffer: bytes) -> bool:
    """Write a hex dump of a saved state to ``filename``."""
    with open(filename, "w", encoding="ascii") as fp:
        fp.write(f"Saved state of {len(buffer)} bytes.\n")
        for start in range(0, len(buffer), 16):
            chunk = bytes(buffer[start:start + 16])
            fp.write(f"  {start:08x}: {chunk.hex(' ')}\n")
    return True


def _free_buffer(buffer: Any) -> None:
    """Release the contents of a saved state when it is mutable."""
    if isinstance(buffer, bytearray):
        del buffer[:]
    elif isinstance(buffer, memoryview):
        buffer.release()


@dataclass
class SessionCallbacks:
    """The functions a game supplies so a session can drive it.

    ``save_game_state(frame)`` returns ``(buffer, checksum)``;
    ``load_game_state(buffer)`` restores a saved state;
    ``advance_frame(flags)`` steps the game one frame during a rollback;
    ``on_event(event)`` receives notifications.
    """

    save_game_state: Callable[[int], tuple[bytes, int]]
    load_game_state: Callable[[bytes], bool]
    advance_frame: Callable[[int], bool]
    on_event: Callable[[Event], bool]
    begin_game: Callable[[str], bool] = _begin_game
    log_game_state: Callable[[str, bytes], bool] = _log_game_state
    free_buffer: Callable[[Any], None] = _free_buffer