import os
import random
import struct

import pytest

from rollnet.gamestate import ROTATE_INCREMENT, Bounds, GameState, Input
from rollnet.nongamestate import PlayerConnectState
from rollnet.session import Session
from rollnet.types import (
    INVALID_HANDLE,
    ErrorCode,
    Event,
    EventCode,
    GGPOError,
    NetworkStats,
    Player,
    PlayerType,
)
from rollnet.vectorwar import VectorWar, fletcher32_checksum, format_game_state


class FakeSession(Session):
    def __init__(self, callbacks):
        self.callbacks = callbacks
        self.calls = []
        self.inputs = bytes(16)
        self.flags = 0
        self.sync_error = None
        self.disconnect_error = None
        self.frames = 0

    def add_player(self, player):
        self.calls.append(("add_player", player.player_num))
        return player.player_num

    def add_local_input(self, player, values):
        self.calls.append(("add_local_input", player, bytes(values)))

    def sync_input(self):
        if self.sync_error is not None:
            raise self.sync_error
        return self.inputs, self.flags

    def increment_frame(self):
        self.frames += 1

    def disconnect_player(self, handle):
        if self.disconnect_error is not None:
            raise self.disconnect_error
        self.calls.append(("disconnect_player", handle))

    def get_network_stats(self, handle):
        self.calls.append(("get_network_stats", handle))
        return NetworkStats(ping=handle)

    def do_poll(self, timeout):
        self.calls.append(("do_poll", timeout))

    def set_frame_delay(self, player, delay):
        self.calls.append(("set_frame_delay", player, delay))

    def set_disconnect_timeout(self, timeout):
        self.calls.append(("set_disconnect_timeout", timeout))

    def set_disconnect_notify_start(self, timeout):
        self.calls.append(("set_disconnect_notify_start", timeout))


def make_game(with_players=True):
    state = GameState.create(Bounds(0, 0, 640, 480), 2)
    players = (
        [Player(PlayerType.LOCAL, 1), Player(PlayerType.REMOTE, 2, "127.0.0.1", 7001)]
        if with_players
        else []
    )
    return VectorWar(FakeSession, state, players, clock=lambda: 5000)


def test_checksum_of_empty_data():
    assert fletcher32_checksum(b"") == -1


def test_checksum_ignores_trailing_odd_byte():
    assert fletcher32_checksum(b"abcd") == fletcher32_checksum(b"abcde")


def test_checksum_detects_changes_and_stays_in_int_range():
    rng = random.Random(7)
    data = bytes(rng.randrange(256) for _ in range(5000))
    changed = bytearray(data)
    changed[100] ^= 1
    first = fletcher32_checksum(data)
    assert -(2 ** 31) <= first < 2 ** 31
    assert first != fletcher32_checksum(bytes(changed))
    assert first == fletcher32_checksum(data)


def test_format_game_state():
    state = GameState.create(Bounds(0, 0, 640, 480), 2)
    text = format_game_state(state)
    assert text.startswith("GameState object.\n")
    assert "  num_ships: 2.\n" in text
    assert text.count(" bullet ") == 2 * 30
    assert "  ship 1 health:    100.\n" in text


def test_init_configures_session():
    vw = make_game()
    calls = vw.session.calls
    assert ("set_disconnect_timeout", 3000) in calls
    assert ("set_disconnect_notify_start", 1000) in calls
    assert ("set_frame_delay", 1, 2) in calls
    assert vw.ngs.local_player_handle == 1
    assert [p.handle for p in vw.ngs.players] == [1, 2]
    assert vw.status_text == "Connecting to peers."


def test_spectator_init():
    vw = make_game(with_players=False)
    assert vw.session.calls == []
    assert vw.ngs.local_player_handle == INVALID_HANDLE
    assert vw.status_text == "Starting new spectator session"


def test_save_and_load_round_trip():
    vw = make_game()
    buffer, checksum = vw.save_game_state(0)
    assert checksum == fletcher32_checksum(buffer)
    original = GameState.from_bytes(buffer)
    vw.advance_frame([Input.THRUST, 0, 0, 0], 0)
    assert vw.game_state != original
    assert vw.load_game_state(buffer) is True
    assert vw.game_state == original


def test_advance_frame_updates_checksum_and_session():
    vw = make_game()
    vw.advance_frame([0, 0, 0, 0], 0)
    assert vw.ngs.now.framenumber == 1
    assert vw.ngs.now.checksum == fletcher32_checksum(vw.game_state.to_bytes())
    assert vw.session.frames == 1
    assert ("get_network_stats", 2) in vw.session.calls
    assert vw.perfmon.series(vw.perfmon.ping_graph[0]) == [2]


def test_periodic_checksum_every_90_frames():
    vw = make_game()
    for _ in range(89):
        vw.advance_frame([0, 0, 0, 0], 0)
    assert vw.ngs.periodic.framenumber == 0
    vw.advance_frame([0, 0, 0, 0], 0)
    assert vw.ngs.periodic.framenumber == 90
    assert vw.ngs.periodic == vw.ngs.now


def test_advance_frame_callback_uses_session_inputs():
    vw = make_game()
    heading = vw.game_state.ships[0].heading
    vw.session.inputs = struct.pack("<4i", Input.ROTATE_RIGHT, 0, 0, 0)
    assert vw.advance_frame_callback(0) is True
    assert vw.game_state.ships[0].heading == (heading + ROTATE_INCREMENT) % 360


def test_run_frame_sends_local_input():
    vw = make_game()
    assert vw.run_frame(int(Input.FIRE)) is True
    assert ("add_local_input", 1, struct.pack("<i", Input.FIRE)) in vw.session.calls
    assert vw.game_state.framenumber == 1


def test_run_frame_waits_when_not_synchronized():
    vw = make_game()
    vw.session.sync_error = GGPOError(ErrorCode.NOT_SYNCHRONIZED)
    assert vw.run_frame(0) is False
    assert vw.game_state.framenumber == 0


def test_events_update_connection_state():
    vw = make_game()
    vw.on_event(Event(EventCode.CONNECTED_TO_PEER, player=2))
    assert vw.ngs.players[1].state == PlayerConnectState.SYNCHRONIZING
    vw.on_event(Event(EventCode.SYNCHRONIZING_WITH_PEER, player=2, count=1, total=4))
    assert vw.ngs.players[1].connect_progress == 25
    vw.on_event(Event(EventCode.SYNCHRONIZED_WITH_PEER, player=2))
    assert vw.ngs.players[1].connect_progress == 100
    assert vw.on_event(Event(EventCode.RUNNING)) is True
    assert vw.status_text == ""
    assert all(p.state == PlayerConnectState.RUNNING for p in vw.ngs.players)


def test_interruption_and_disconnect_events():
    vw = make_game()
    vw.on_event(Event(EventCode.CONNECTION_INTERRUPTED, player=2, disconnect_timeout=3000))
    info = vw.ngs.players[1]
    assert info.state == PlayerConnectState.DISCONNECTING
    assert info.disconnect_start == 5000
    assert info.disconnect_timeout == 3000
    vw.on_event(Event(EventCode.CONNECTION_RESUMED, player=2))
    assert info.state == PlayerConnectState.RUNNING
    vw.on_event(Event(EventCode.DISCONNECTED_FROM_PEER, player=2))
    assert info.state == PlayerConnectState.DISCONNECTED


def test_timesync_sleeps():
    vw = make_game()
    slept = []
    vw.sleep = slept.append
    vw.on_event(Event(EventCode.TIMESYNC, frames_ahead=6))
    assert slept == [100]


def test_disconnect_player_messages():
    vw = make_game()
    vw.disconnect_player(1)
    assert ("disconnect_player", 2) in vw.session.calls
    assert vw.status_text == "Disconnected player 1.\n"
    vw.session.disconnect_error = GGPOError(ErrorCode.PLAYER_DISCONNECTED)
    vw.disconnect_player(1)
    assert vw.status_text == f"Error while disconnecting player (err:{int(ErrorCode.PLAYER_DISCONNECTED)}).\n"


def test_disconnect_out_of_range_is_ignored():
    vw = make_game()
    vw.status_text = "unchanged"
    vw.disconnect_player(5)
    assert vw.status_text == "unchanged"
    assert not any(call[0] == "disconnect_player" for call in vw.session.calls)


def test_idle_polls_session():
    vw = make_game()
    vw.idle(7)
    assert vw.session.calls[-1] == ("do_poll", 7)


def test_log_game_state_writes_file(tmp_path):
    vw = make_game()
    buffer, _ = vw.save_game_state(0)
    target = os.fspath(tmp_path / "state.log")
    assert vw.log_game_state(target, buffer) is True
    with open(target, encoding="ascii") as fp:
        assert fp.read() == format_game_state(GameState.from_bytes(buffer))


def test_load_rejects_bad_buffer():
    vw = make_game()
    with pytest.raises(ValueError):
        vw.load_game_state(b"short")