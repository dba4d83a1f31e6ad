"""The interface every kind of session implements."""

from __future__ import annotations

import abc
import logging

from .types import ErrorCode, GGPOError, NetworkStats, Player

_log = logging.getLogger("rollnet")


class Session(abc.ABC):
    """Base class of all sessions.

    Operations that fail raise :class:`GGPOError`.  Subclasses must provide
    player registration and input handling; the rest default to recording
    the request in the session log, and the tuning setters default to being
    unsupported.
    """

    def do_poll(self, timeout: int) -> None:
        """Give the session a chance to do work for up to ``timeout`` ms."""
        self.log(f"poll with {timeout} ms to spare.\n")

    @abc.abstractmethod
    def add_player(self, player: Player) -> int:
        """Register a player and return its handle."""

    @abc.abstractmethod
    def add_local_input(self, player: int, values: bytes) -> None:
        """Queue this frame's input for a local player."""

    @abc.abstractmethod
    def sync_input(self) -> tuple[bytes, int]:
        """Return the inputs of every player for this frame and the disconnect flags."""

    def increment_frame(self) -> None:
        """Note that the game has advanced one frame."""
        self.log("End of frame.\n")

    def chat(self, text: str) -> None:
        """Send a chat line; this session only records it in the log."""
        self.log(f"chat: {text}\n")

    def disconnect_player(self, handle: int) -> None:
        """Disconnect a player from the session."""
        self.log(f"disconnect request for player {handle}.\n")

    def get_network_stats(self, handle: int) -> NetworkStats:
        """Return connection statistics for the player ``handle``."""
        return NetworkStats()

    def log(self, message: str) -> None:
        """Write ``message`` to the session log."""
        _log.debug("%s", message.rstrip("\n"))

    def set_frame_delay(self, player: int, delay: int) -> None:
        """Set how many frames local input for ``player`` is delayed."""
        raise GGPOError(ErrorCode.UNSUPPORTED, "frame delay is not supported")

    def set_disconnect_timeout(self, timeout: int) -> None:
        """Set the silence in ms after which a peer is disconnected."""
        raise GGPOError(ErrorCode.UNSUPPORTED, "disconnect timeout is not supported")

    def set_disconnect_notify_start(self, timeout: int) -> None:
        """Set the silence in ms after which an interruption is reported."""
        raise GGPOError(ErrorCode.UNSUPPORTED, "disconnect notification is not supported")