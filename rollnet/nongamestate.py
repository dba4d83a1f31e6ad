"""Bookkeeping that is kept outside the rolled-back game state."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from itertools import islice
from typing import Iterator

from .types import INVALID_HANDLE, PlayerType

MAX_PLAYERS = 64


class PlayerConnectState(enum.IntEnum):
    CONNECTING = 0
    SYNCHRONIZING = 1
    RUNNING = 2
    DISCONNECTED = 3
    DISCONNECTING = 4


@dataclass
class PlayerConnectionInfo:
    type: PlayerType = PlayerType.LOCAL
    handle: int = 0
    state: PlayerConnectState = PlayerConnectState.CONNECTING
    connect_progress: int = 0
    disconnect_timeout: int = 0
    disconnect_start: int = 0


@dataclass
class ChecksumInfo:
    framenumber: int = 0
    checksum: int = 0


@dataclass
class NonGameState:
    """Connection status of each player and the latest checksums.

    Only the first ``num_players`` entries of ``players`` are searched by
    the update methods; later entries may describe spectators.
    """

    local_player_handle: int = INVALID_HANDLE
    players: list[PlayerConnectionInfo] = field(default_factory=list)
    num_players: int = 0
    now: ChecksumInfo = field(default_factory=ChecksumInfo)
    periodic: ChecksumInfo = field(default_factory=ChecksumInfo)

    def _active(self) -> Iterator[PlayerConnectionInfo]:
        return islice(self.players, self.num_players)

    def _find(self, handle: int) -> PlayerConnectionInfo | None:
        return next((p for p in self._active() if p.handle == handle), None)

    def set_connect_state(self, handle: int, state: PlayerConnectState) -> None:
        """Set the state of the player ``handle`` and reset its progress."""
        player = self._find(handle)
        if player is not None:
            player.connect_progress = 0
            player.state = state

    def set_all_connect_state(self, state: PlayerConnectState) -> None:
        """Set the state of every player."""
        for player in self._active():
            player.state = state

    def set_disconnect_timeout(self, handle: int, now: int, timeout: int) -> None:
        """Mark the player ``handle`` as disconnecting from ``now`` for ``timeout`` ms."""
        player = self._find(handle)
        if player is not None:
            player.disconnect_start = now
            player.disconnect_timeout = timeout
            player.state = PlayerConnectState.DISCONNECTING

    def update_connect_progress(self, handle: int, progress: int) -> None:
        """Record the synchronisation progress of the player ``handle``."""
        player = self._find(handle)
        if player is not None:
            player.connect_progress = progress