import pytest

from rollnet.types import (
    INVALID_HANDLE,
    ErrorCode,
    Event,
    EventCode,
    GGPOError,
    NetworkStats,
    Player,
    PlayerType,
    SessionCallbacks,
    succeeded,
)


def test_error_codes_match_documented_values():
    assert ErrorCode(-1) is ErrorCode.GENERAL_FAILURE
    assert ErrorCode(11) is ErrorCode.INVALID_REQUEST
    assert ErrorCode(0) is ErrorCode.OK
    assert ErrorCode.SUCCESS is ErrorCode.OK


def test_event_codes_match_documented_values():
    assert EventCode(1000) is EventCode.CONNECTED_TO_PEER
    assert EventCode(1005) is EventCode.TIMESYNC
    assert EventCode(1007) is EventCode.CONNECTION_RESUMED


def test_invalid_handle_is_not_a_success_code():
    assert succeeded(INVALID_HANDLE) is False


@pytest.mark.parametrize(
    "code, expected",
    [
        (ErrorCode.OK, True),
        (ErrorCode.SUCCESS, True),
        (0, True),
        (ErrorCode.UNSUPPORTED, False),
        (ErrorCode.GENERAL_FAILURE, False),
    ],
)
def test_succeeded(code, expected):
    assert succeeded(code) is expected


def test_error_carries_code_and_default_message():
    err = GGPOError(ErrorCode.PLAYER_DISCONNECTED)
    assert err.code is ErrorCode.PLAYER_DISCONNECTED
    assert "PLAYER_DISCONNECTED" in str(err)
    assert err.message == "player disconnected"


def test_error_accepts_int_code_and_custom_message():
    err = GGPOError(4, "too far ahead")
    assert err.code is ErrorCode.PREDICTION_THRESHOLD
    assert err.message == "too far ahead"


def test_error_rejects_unknown_code():
    with pytest.raises(ValueError):
        GGPOError(999)


def test_event_defaults():
    event = Event(EventCode.RUNNING)
    assert event.player is None
    assert (event.count, event.total, event.frames_ahead, event.disconnect_timeout) == (0, 0, 0, 0)


def test_player_coerces_type():
    player = Player(1, player_num=2, ip_address="127.0.0.1", port=7001)
    assert player.type is PlayerType.REMOTE
    assert player.port == 7001


def test_player_rejects_long_address():
    with pytest.raises(ValueError):
        Player(PlayerType.REMOTE, 1, "a" * 32, 7000)


def test_player_accepts_longest_address():
    player = Player(PlayerType.REMOTE, 1, "a" * 31, 7000)
    assert len(player.ip_address) == 31


def test_player_rejects_bad_port():
    with pytest.raises(ValueError):
        Player(PlayerType.SPECTATOR, 0, "127.0.0.1", 70000)


def test_network_stats_default_zero():
    stats = NetworkStats()
    assert stats == NetworkStats(0, 0, 0, 0, 0, 0)