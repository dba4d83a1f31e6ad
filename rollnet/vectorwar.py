"""The vector war game wired to a rollback session."""

from __future__ import annotations

import dataclasses
import struct
import time
from contextlib import suppress
from typing import Callable, Iterable, Optional, Sequence

from .gamestate import FRAME_DELAY, MAX_BULLETS, MAX_SHIPS, GameState
from .nongamestate import NonGameState, PlayerConnectionInfo, PlayerConnectState
from .perfmon import PerfMon
from .session import Session
from .types import (
    INVALID_HANDLE,
    Event,
    EventCode,
    GGPOError,
    Player,
    PlayerType,
    SessionCallbacks,
)

DISCONNECT_TIMEOUT = 3000
DISCONNECT_NOTIFY_START = 1000
PERIODIC_CHECKSUM_INTERVAL = 90
_FLETCHER_BLOCK = 360


def _i32(value: int) -> int:
    return (value + 0x80000000) % 0x100000000 - 0x80000000


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


def _sleep_ms(ms: int) -> None:
    time.sleep(ms / 1000)


def fletcher32_checksum(data: bytes) -> int:
    """Fletcher-32 over ``data`` read as signed 16-bit little-endian words."""
    count = len(data) // 2
    words = struct.unpack_from(f"<{count}h", data)
    sum1 = sum2 = 0xFFFF
    for start in range(0, count, _FLETCHER_BLOCK):
        for word in words[start:start + _FLETCHER_BLOCK]:
            sum1 += word
            sum2 += sum1
        sum1, sum2 = _i32(sum1), _i32(sum2)
        sum1 = (sum1 & 0xFFFF) + (sum1 >> 16)
        sum2 = (sum2 & 0xFFFF) + (sum2 >> 16)
    sum1 = (sum1 & 0xFFFF) + (sum1 >> 16)
    sum2 = (sum2 & 0xFFFF) + (sum2 >> 16)
    return _i32((sum2 << 16) | sum1)


def format_game_state(state: GameState) -> str:
    """Describe a game state in the readable form used for sync logs."""
    b = state.bounds
    lines = [
        "GameState object.",
        f"  bounds: {b.left},{b.top} x {b.right},{b.bottom}.",
        f"  num_ships: {state.num_ships}.",
    ]
    for i, ship in enumerate(state.ships[: state.num_ships]):
        lines += [
            f"  ship {i} position:  {ship.position.x:.4f}, {ship.position.y:.4f}",
            f"  ship {i} velocity:  {ship.velocity.dx:.4f}, {ship.velocity.dy:.4f}",
            f"  ship {i} radius:    {ship.radius}.",
            f"  ship {i} heading:   {ship.heading}.",
            f"  ship {i} health:    {ship.health}.",
            f"  ship {i} speed:     {ship.speed}.",
            f"  ship {i} cooldown:  {ship.cooldown}.",
            f"  ship {i} score:     {ship.score}.",
        ]
        lines += [
            f"  ship {i} bullet {j}: {bullet.position.x:.2f} {bullet.position.y:.2f} -> "
            f"{bullet.velocity.dx:.2f} {bullet.velocity.dy:.2f}."
            for j, bullet in enumerate(bullet for bullet in ship.bullets[:MAX_BULLETS])
        ]
    return "\n".join(lines) + "\n"


def _decode_inputs(values: bytes) -> list[int]:
    count = min(len(values) // 4, MAX_SHIPS)
    inputs = list(struct.unpack_from(f"<{count}i", values))
    return inputs + [0] * (MAX_SHIPS - count)


class VectorWar:
    """Runs the game against a session and keeps the non-rolled-back bookkeeping.

    ``session`` is called with the game's :class:`SessionCallbacks` and must
    return the session to play on.  With no ``players`` the session is treated
    as a spectator session.
    """

    def __init__(
        self,
        session: Callable[[SessionCallbacks], Session],
        game_state: GameState,
        players: Iterable[Player] = (),
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.game_state = game_state
        self.clock = clock or _monotonic_ms
        self.sleep: Callable[[int], None] = _sleep_ms
        self.status_text = ""
        self.ngs = NonGameState(num_players=game_state.num_ships)
        self.perfmon = PerfMon(self.clock)
        self.callbacks = SessionCallbacks(
            save_game_state=self.save_game_state,
            load_game_state=self.load_game_state,
            advance_frame=self.advance_frame_callback,
            on_event=self.on_event,
            log_game_state=self.log_game_state,
        )
        self.session = session(self.callbacks)

        players = list(players)
        if players:
            # Disconnect after 3 s of silence, start the countdown after 1 s.
            with suppress(GGPOError):
                self.session.set_disconnect_timeout(DISCONNECT_TIMEOUT)
            with suppress(GGPOError):
                self.session.set_disconnect_notify_start(DISCONNECT_NOTIFY_START)

        for player in players:
            handle = self.session.add_player(player)
            info = PlayerConnectionInfo(type=player.type, handle=handle)
            self.ngs.players.append(info)
            if player.type == PlayerType.LOCAL:
                info.connect_progress = 100
                self.ngs.local_player_handle = handle
                self.ngs.set_connect_state(handle, PlayerConnectState.CONNECTING)
                with suppress(GGPOError):
                    self.session.set_frame_delay(handle, FRAME_DELAY)

        self.status_text = "Connecting to peers." if players else "Starting new spectator session"

    def on_event(self, event: Event) -> bool:
        """Reflect a session notification in the connection bookkeeping."""
        code = event.code
        if code == EventCode.CONNECTED_TO_PEER:
            self.ngs.set_connect_state(event.player, PlayerConnectState.SYNCHRONIZING)
        elif code == EventCode.SYNCHRONIZING_WITH_PEER:
            progress = 100 * event.count // event.total
            self.ngs.update_connect_progress(event.player, progress)
        elif code == EventCode.SYNCHRONIZED_WITH_PEER:
            self.ngs.update_connect_progress(event.player, 100)
        elif code == EventCode.RUNNING:
            self.ngs.set_all_connect_state(PlayerConnectState.RUNNING)
            self.status_text = ""
        elif code == EventCode.CONNECTION_INTERRUPTED:
            self.ngs.set_disconnect_timeout(event.player, self.clock(), event.disconnect_timeout)
        elif code == EventCode.CONNECTION_RESUMED:
            self.ngs.set_connect_state(event.player, PlayerConnectState.RUNNING)
        elif code == EventCode.DISCONNECTED_FROM_PEER:
            self.ngs.set_connect_state(event.player, PlayerConnectState.DISCONNECTED)
        elif code == EventCode.TIMESYNC:
            self.sleep(1000 * event.frames_ahead // 60)
        return True

    def advance_frame(self, inputs: Sequence[int], disconnect_flags: int) -> None:
        """Advance the game one frame and tell the session about it."""
        self.game_state.update(inputs, disconnect_flags)

        self.ngs.now.framenumber = self.game_state.framenumber
        self.ngs.now.checksum = fletcher32_checksum(self.game_state.to_bytes())
        if self.game_state.framenumber % PERIODIC_CHECKSUM_INTERVAL == 0:
            self.ngs.periodic = dataclasses.replace(self.ngs.now)

        self.session.increment_frame()

        handles = [
            p.handle
            for p in self.ngs.players[: self.ngs.num_players]
            if p.type == PlayerType.REMOTE
        ]
        self.perfmon.update(self.session, handles)

    def advance_frame_callback(self, flags: int) -> bool:
        """Step one frame during a rollback using the session's inputs."""
        values, disconnect_flags = self.session.sync_input()
        self.advance_frame(_decode_inputs(values), disconnect_flags)
        return True

    def save_game_state(self, frame: int) -> tuple[bytes, int]:
        """Return the serialised state and its checksum."""
        buffer = self.game_state.to_bytes()
        return buffer, fletcher32_checksum(buffer)

    def load_game_state(self, buffer: bytes) -> bool:
        """Replace the current state with a saved one."""
        self.game_state = GameState.from_bytes(buffer)
        return True

    def log_game_state(self, filename: str, buffer: bytes) -> bool:
        """Write a readable dump of a saved state to ``filename``."""
        text = format_game_state(GameState.from_bytes(buffer))
        with suppress(OSError), open(filename, "w", encoding="ascii") as fp:
            fp.write(text)
        return True

    def run_frame(self, local_input: int) -> bool:
        """Feed local input, then advance if the session has every input.

        Returns True when the game advanced a frame.
        """
        if self.ngs.local_player_handle != INVALID_HANDLE:
            try:
                self.session.add_local_input(
                    self.ngs.local_player_handle, struct.pack("<i", local_input)
                )
            except GGPOError:
                return False
        try:
            values, disconnect_flags = self.session.sync_input()
        except GGPOError:
            return False
        self.advance_frame(_decode_inputs(values), disconnect_flags)
        return True

    def disconnect_player(self, player: int) -> None:
        """Disconnect the player in slot ``player`` and report the outcome."""
        if player >= self.ngs.num_players:
            return
        try:
            self.session.disconnect_player(self.ngs.players[player].handle)
        except GGPOError as error:
            self.status_text = f"Error while disconnecting player (err:{int(error.code)}).\n"
        else:
            self.status_text = f"Disconnected player {player}.\n"

    def idle(self, time: int) -> None:
        """Give the session up to ``time`` ms for its own work."""
        self.session.do_poll(time)