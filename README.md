# rollnet

Building blocks for rollback-style multiplayer games, together with the
Vector War sample game that uses them.

In a rollback game every player runs the simulation on predicted input. When
the real input for an earlier frame turns up, the game loads the state saved
for that frame and replays forward. `rollnet` supplies the types, the session
interface, the input encoding and a complete, serialisable sample game that
fit that scheme.

## Modules

| Module                 | Contents                                                                 |
|------------------------|--------------------------------------------------------------------------|
| `rollnet.types`        | `PlayerType`, `ErrorCode`, `EventCode`, `Event`, `Player`, `NetworkStats`, `SessionCallbacks`, the `GGPOError` exception and `succeeded()` |
| `rollnet.session`      | `Session`, the abstract interface a session implements                   |
| `rollnet.bitvector`    | `BitVector`, a bit-level cursor over a `bytearray`                       |
| `rollnet.game_input`   | `GameInput`, one frame of input bits                                     |
| `rollnet.gamestate`    | The Vector War simulation: `GameState`, `Ship`, `Bullet`, `Bounds`, `Position`, `Velocity`, `Input` |
| `rollnet.nongamestate` | Connection bookkeeping that is never rolled back: `NonGameState`, `PlayerConnectionInfo`, `PlayerConnectState`, `ChecksumInfo` |
| `rollnet.perfmon`      | `PerfMon` rolling graphs, `fairness()` and `format_stats()`              |
| `rollnet.vectorwar`    | `VectorWar`, which drives the game through a session, plus `fletcher32_checksum()` and `format_game_state()` |
| `rollnet.args`         | `parse_command_line()`, `parse_endpoint()`, `LaunchConfig`, `UsageError` |

## Sessions and errors

`Session` declares the operations a game calls: `add_player`,
`add_local_input`, `sync_input`, `increment_frame`, `do_poll`,
`disconnect_player`, `get_network_stats`, `chat`, `log` and the tuning setters
`set_frame_delay`, `set_disconnect_timeout` and `set_disconnect_notify_start`.
A subclass must implement `add_player`, `add_local_input` and `sync_input`.
The other operations have defaults: most write to the `rollnet` logger,
`get_network_stats` returns zeroed `NetworkStats`, and the three tuning
setters raise `GGPOError(ErrorCode.UNSUPPORTED)`.

Failures are reported by raising `GGPOError`, whose `code` is an `ErrorCode`
such as `PLAYER_OUT_OF_RANGE`, `NOT_SYNCHRONIZED` or `PREDICTION_THRESHOLD`.
`succeeded(code)` tells whether a code means success.

`SessionCallbacks` holds what a session calls back into the game:
`save_game_state(frame)` returning `(buffer, checksum)`,
`load_game_state(buffer)`, `advance_frame(flags)` and `on_event(event)`, plus
`begin_game`, `log_game_state` and `free_buffer`, which have defaults.

## Encoding input

```python
from rollnet.bitvector import BitVector

writer = BitVector(bytearray(4), 0)
writer.write_nibblet(0x5A)
writer.set_bit()

reader = BitVector(writer.data, 0)
assert reader.read_nibblet() == 0x5A
assert reader.read_bit() == 1
```

```python
from rollnet.game_input import GameInput

frame = GameInput.from_bits(10, b"\x03\x00", 2)
assert frame.value(0) and frame.value(1)
assert not frame.is_null()
print(frame.desc())  # (frame:10 size:2  0  1 )
```

## The simulation

`GameState` holds everything that must be saved and restored during a
rollback. `to_bytes()` writes it into a fixed-size buffer and
`GameState.from_bytes()` reads it back; `fletcher32_checksum()` over those
bytes is the figure peers compare to detect a desync.

```python
from rollnet.gamestate import Bounds, GameState, Input
from rollnet.vectorwar import fletcher32_checksum

state = GameState.create(Bounds(0, 0, 640, 480), 2)
state.update([Input.THRUST, Input.FIRE], 0)

snapshot = state.to_bytes()
restored = GameState.from_bytes(snapshot)
assert fletcher32_checksum(restored.to_bytes()) == fletcher32_checksum(snapshot)
```

A ship whose bit is set in `disconnect_flags` is steered by the built-in
ship AI (`get_ship_ai`) instead of by its input.

## Driving the game through a session

`VectorWar` takes a factory that receives the game's `SessionCallbacks` and
returns a `Session`, the initial `GameState`, and the players to add. It keeps
the connection status in `ngs`, the latest message in `status_text` and the
network graphs in `perfmon`. `run_frame(local_input)` adds the local input,
synchronises inputs and advances one frame, returning whether it did.

```python
from rollnet.gamestate import Bounds, GameState, Input
from rollnet.session import Session
from rollnet.types import Player, PlayerType
from rollnet.vectorwar import VectorWar


class LocalSession(Session):
    def __init__(self, callbacks):
        self.callbacks = callbacks
        self.pending = {}

    def add_player(self, player):
        return player.player_num

    def add_local_input(self, player, values):
        self.pending[player] = values

    def sync_input(self):
        return self.pending.get(1, bytes(4)), 0


game = VectorWar(
    LocalSession,
    GameState.create(Bounds(0, 0, 640, 480), 1),
    [Player(PlayerType.LOCAL, 1)],
)
assert game.run_frame(Input.THRUST)
assert game.game_state.framenumber == 1
```

Events passed to `VectorWar.on_event` update the per-player connection state;
a `TIMESYNC` event sleeps for the reported number of frames.

## Launch syntax

The sample game's arguments take one of two forms:

```
<local port> <num players> ('local' | <remote ip>:<remote port>)* [<spectator ip>:<port> ...]
<local port> <num players> spectate <host ip>:<host port>
```

`parse_command_line(argv)` takes the arguments after the program name and
returns a `LaunchConfig`; it raises `UsageError` when they do not follow this
syntax. `parse_endpoint("host:port")` splits a single endpoint.

## What the package does not do

- It has no working session: there is no network transport, no peer-to-peer
  or spectator session and no sync-test session. A game must supply its own
  `Session` subclass.
- It does not draw anything or open a window; the game state and
  `PerfMon` graphs are data only.
- It installs no command. `parse_command_line` only parses; nothing starts a
  game from the command line.

## Tests

The test suite uses pytest; install the `test` extra to get it.