"""Command-line parsing for launching a vector war session."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from .types import Player, PlayerType

USAGE = (
    "Syntax: vectorwar.exe <local port> <num players> "
    "('local' | <remote ip>:<remote port>)*"
)

_ENDPOINT = re.compile(r"([^:]+):\s*([+-]?\d+)")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class UsageError(ValueError):
    """Raised when the command line does not follow the expected syntax."""

    def __init__(self, message: str = USAGE) -> None:
        super().__init__(message)


@dataclass(frozen=True)
class LaunchConfig:
    """What the command line asks for.

    For a spectator session ``host_ip`` and ``host_port`` name the host and
    ``players`` is empty; otherwise ``players`` holds the players followed by
    any spectators.
    """

    local_port: int
    num_players: int
    players: tuple[Player, ...] = ()
    num_spectators: int = 0
    local_player: int = 0
    host_ip: Optional[str] = None
    host_port: Optional[int] = None

    @property
    def spectate(self) -> bool:
        """True when this launch joins a game as a spectator."""
        return self.host_ip is not None


def _leading_int(text: str) -> int:
    """Read a leading integer the lenient way; 0 when there is none."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _to_short(value: int) -> int:
    return (value + 0x8000) % 0x10000 - 0x8000


def parse_endpoint(text: str) -> tuple[str, int]:
    """Split ``host:port`` into its host and port.

    The host is everything before the first colon and must not be empty;
    the port is the integer that follows, and anything after it is ignored.
    """
    match = _ENDPOINT.match(text)
    if match is None:
        raise UsageError(f"{USAGE}\nbad endpoint: {text!r}")
    return match.group(1), int(match.group(2))


def _remote(kind: PlayerType, text: str, player_num: int) -> Player:
    host, port = parse_endpoint(text)
    try:
        return Player(type=kind, player_num=player_num, ip_address=host, port=_to_short(port))
    except ValueError as error:
        raise UsageError(f"{USAGE}\n{error}") from error


def parse_command_line(argv: Sequence[str]) -> LaunchConfig:
    """Parse the arguments that follow the program name.

    ``<local port> <num players> ('local' | <ip>:<port>)* [<ip>:<port> ...]``
    or ``<local port> <num players> spectate <host ip>:<host port>``.
    """
    args = list(argv)
    if len(args) < 2:
        raise UsageError()
    local_port = _leading_int(args[0])
    num_players = _leading_int(args[1])
    rest = args[2:]
    if num_players < 0 or len(rest) < num_players:
        raise UsageError()

    if rest and rest[0] == "spectate":
        if len(rest) < 2:
            raise UsageError()
        host_ip, host_port = parse_endpoint(rest[1])
        return LaunchConfig(
            local_port=local_port,
            num_players=num_players,
            host_ip=host_ip,
            host_port=host_port,
        )

    players: list[Player] = []
    local_player = 0
    for i, arg in enumerate(rest[:num_players]):
        if arg.lower() == "local":
            players.append(Player(type=PlayerType.LOCAL, player_num=i + 1))
            local_player = i
        else:
            players.append(_remote(PlayerType.REMOTE, arg, i + 1))

    spectators = [_remote(PlayerType.SPECTATOR, arg, 0) for arg in rest[num_players:]]
    return LaunchConfig(
        local_port=local_port,
        num_players=num_players,
        players=tuple(players + spectators),
        num_spectators=len(spectators),
        local_player=local_player,
    )