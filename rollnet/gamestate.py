"""The complete, rollback-able state of the vector war game."""

from __future__ import annotations

import enum
import logging
import math
import struct
from dataclasses import dataclass, field
from typing import Sequence

_log = logging.getLogger("rollnet")

PI = 3.1415926
STARTING_HEALTH = 100
ROTATE_INCREMENT = 3
SHIP_RADIUS = 15
SHIP_WIDTH = 8
SHIP_TUCK = 3
SHIP_THRUST = 0.06
SHIP_MAX_THRUST = 4.0
SHIP_BREAK_SPEED = 0.6
BULLET_SPEED = 5
MAX_BULLETS = 30
BULLET_COOLDOWN = 8
BULLET_DAMAGE = 10
MAX_SHIPS = 4
FRAME_DELAY = 2

_HEADER = struct.Struct("<i4ii")
_SHIP_HEAD = struct.Struct("<4d5i4x")
_BULLET = struct.Struct("<?7x4d")
_SHIP_TAIL = struct.Struct("<i4x")
_SHIP_SIZE = _SHIP_HEAD.size + MAX_BULLETS * _BULLET.size + _SHIP_TAIL.size
STATE_SIZE = _HEADER.size + MAX_SHIPS * _SHIP_SIZE


class Input(enum.IntFlag):
    """Controller bits of one ship."""

    THRUST = 1 << 0
    BREAK = 1 << 1
    ROTATE_LEFT = 1 << 2
    ROTATE_RIGHT = 1 << 3
    FIRE = 1 << 4
    BOMB = 1 << 5


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def _degtorad(deg: float) -> float:
    return PI * deg / 180


@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0


@dataclass
class Velocity:
    dx: float = 0.0
    dy: float = 0.0


@dataclass
class Bullet:
    active: bool = False
    position: Position = field(default_factory=Position)
    velocity: Velocity = field(default_factory=Velocity)


def _bullets() -> list[Bullet]:
    return [Bullet() for _ in range(MAX_BULLETS)]


@dataclass
class Ship:
    position: Position = field(default_factory=Position)
    velocity: Velocity = field(default_factory=Velocity)
    radius: int = 0
    heading: int = 0
    health: int = 0
    speed: int = 0
    cooldown: int = 0
    bullets: list[Bullet] = field(default_factory=_bullets)
    score: int = 0


@dataclass(frozen=True)
class Bounds:
    """An integer rectangle."""

    left: int = 0
    top: int = 0
    right: int = 0
    bottom: int = 0

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    def inflate(self, dx: int, dy: int) -> "Bounds":
        """Return the rectangle grown by ``dx``/``dy`` on each side (shrunk if negative)."""
        return Bounds(self.left - dx, self.top - dy, self.right + dx, self.bottom + dy)


def _ships() -> list[Ship]:
    return [Ship() for _ in range(MAX_SHIPS)]


@dataclass
class GameState:
    """Everything that is saved, restored and replayed during rollback."""

    framenumber: int = 0
    bounds: Bounds = field(default_factory=Bounds)
    num_ships: int = 0
    ships: list[Ship] = field(default_factory=_ships)

    @classmethod
    def create(cls, client_bounds: Bounds, num_players: int) -> "GameState":
        """Set up ships in a circle inside a window of ``client_bounds``."""
        if not 0 <= num_players <= MAX_SHIPS:
            raise ValueError(f"number of players must be between 0 and {MAX_SHIPS}")
        bounds = client_bounds.inflate(-8, -8)
        w, h = bounds.width, bounds.height
        r = _trunc_div(h, 4)
        state = cls(framenumber=0, bounds=bounds, num_ships=num_players)
        for i, ship in enumerate(state.ships[:num_players]):
            heading = i * 360 // num_players
            theta = heading * PI / 180
            ship.position.x = _trunc_div(w, 2) + r * math.cos(theta)
            ship.position.y = _trunc_div(h, 2) + r * math.sin(theta)
            ship.heading = (heading + 180) % 360
            ship.health = STARTING_HEALTH
            ship.radius = SHIP_RADIUS
        state.bounds = bounds.inflate(-8, -8)
        return state

    def get_ship_ai(self, i: int) -> tuple[float, float, bool]:
        """Return heading, thrust and fire for a ship nobody controls."""
        return float((self.ships[i].heading + 5) % 360), 0.0, False

    def parse_ship_inputs(self, inputs: int, i: int) -> tuple[float, float, bool]:
        """Turn controller bits into heading, thrust and fire for ship ``i``."""
        ship = self.ships[i]
        _log.debug("parsing ship %d inputs: %d.", i, inputs)
        if inputs & Input.ROTATE_RIGHT:
            heading = (ship.heading + ROTATE_INCREMENT) % 360
        elif inputs & Input.ROTATE_LEFT:
            heading = (ship.heading - ROTATE_INCREMENT + 360) % 360
        else:
            heading = ship.heading
        if inputs & Input.THRUST:
            thrust = SHIP_THRUST
        elif inputs & Input.BREAK:
            thrust = -SHIP_THRUST
        else:
            thrust = 0.0
        return float(heading), thrust, bool(inputs & Input.FIRE)

    def move_ship(self, i: int, heading: float, thrust: float, fire: bool) -> None:
        """Advance ship ``i`` and its bullets by one frame."""
        ship = self.ships[i]
        _log.debug(
            "calculation of new ship coordinates: (thrust:%.4f heading:%.4f).", thrust, heading
        )
        ship.heading = int(heading)

        if ship.cooldown == 0 and fire:
            _log.debug("firing bullet.")
            dx = math.cos(_degtorad(ship.heading))
            dy = math.sin(_degtorad(ship.heading))
            for bullet in ship.bullets:
                if not bullet.active:
                    bullet.active = True
                    bullet.position.x = ship.position.x + ship.radius * dx
                    bullet.position.y = ship.position.y + ship.radius * dy
                    bullet.velocity.dx = ship.velocity.dx + BULLET_SPEED * dx
                    bullet.velocity.dy = ship.velocity.dy + BULLET_SPEED * dy
                    ship.cooldown = BULLET_COOLDOWN
                    break

        if thrust:
            ship.velocity.dx += thrust * math.cos(_degtorad(heading))
            ship.velocity.dy += thrust * math.sin(_degtorad(heading))
            mag = math.hypot(ship.velocity.dx, ship.velocity.dy)
            if mag > SHIP_MAX_THRUST:
                ship.velocity.dx = ship.velocity.dx * SHIP_MAX_THRUST / mag
                ship.velocity.dy = ship.velocity.dy * SHIP_MAX_THRUST / mag
        _log.debug("new ship velocity: (dx:%.4f dy:%2.f).", ship.velocity.dx, ship.velocity.dy)

        ship.position.x += ship.velocity.dx
        ship.position.y += ship.velocity.dy
        _log.debug("new ship position: (dx:%.4f dy:%2.f).", ship.position.x, ship.position.y)

        b = self.bounds
        if ship.position.x - ship.radius < b.left or ship.position.x + ship.radius > b.right:
            ship.velocity.dx *= -1
            ship.position.x += ship.velocity.dx * 2
        if ship.position.y - ship.radius < b.top or ship.position.y + ship.radius > b.bottom:
            ship.velocity.dy *= -1
            ship.position.y += ship.velocity.dy * 2

        for bullet in ship.bullets:
            if not bullet.active:
                continue
            bullet.position.x += bullet.velocity.dx
            bullet.position.y += bullet.velocity.dy
            if (
                bullet.position.x < b.left
                or bullet.position.y < b.top
                or bullet.position.x > b.right
                or bullet.position.y > b.bottom
            ):
                bullet.active = False
                continue
            for other in self.ships[: self.num_ships]:
                distance = math.hypot(
                    other.position.x - bullet.position.x, other.position.y - bullet.position.y
                )
                if distance < other.radius:
                    ship.score += 1
                    other.health -= BULLET_DAMAGE
                    bullet.active = False
                    break

    def update(self, inputs: Sequence[int], disconnect_flags: int) -> None:
        """Advance the whole game one frame with one input per ship."""
        self.framenumber += 1
        for i in range(self.num_ships):
            if disconnect_flags & (1 << i):
                heading, thrust, fire = self.get_ship_ai(i)
            else:
                heading, thrust, fire = self.parse_ship_inputs(inputs[i], i)
            self.move_ship(i, heading, thrust, fire)
            if self.ships[i].cooldown:
                self.ships[i].cooldown -= 1

    def to_bytes(self) -> bytes:
        """Serialise the state into a fixed-size buffer of ``STATE_SIZE`` bytes."""
        b = self.bounds
        parts = [_HEADER.pack(self.framenumber, b.left, b.top, b.right, b.bottom, self.num_ships)]
        for ship in self.ships:
            parts.append(
                _SHIP_HEAD.pack(
                    ship.position.x, ship.position.y, ship.velocity.dx, ship.velocity.dy,
                    ship.radius, ship.heading, ship.health, ship.speed, ship.cooldown,
                )
            )
            parts.extend(
                _BULLET.pack(
                    bullet.active, bullet.position.x, bullet.position.y,
                    bullet.velocity.dx, bullet.velocity.dy,
                )
                for bullet in ship.bullets
            )
            parts.append(_SHIP_TAIL.pack(ship.score))
        return b"".join(parts)

    @classmethod
    def from_bytes(cls, data: bytes) -> "GameState":
        """Rebuild a state written by :meth:`to_bytes`."""
        if len(data) != STATE_SIZE:
            raise ValueError(f"game state must be {STATE_SIZE} bytes, got {len(data)}")
        view = memoryview(data)
        frame, left, top, right, bottom, num_ships = _HEADER.unpack_from(view, 0)
        pos = _HEADER.size
        ships = []
        for _ in range(MAX_SHIPS):
            x, y, dx, dy, radius, heading, health, speed, cooldown = _SHIP_HEAD.unpack_from(view, pos)
            pos += _SHIP_HEAD.size
            bullets = []
            for _ in range(MAX_BULLETS):
                active, bx, by, bdx, bdy = _BULLET.unpack_from(view, pos)
                pos += _BULLET.size
                bullets.append(Bullet(active, Position(bx, by), Velocity(bdx, bdy)))
            (score,) = _SHIP_TAIL.unpack_from(view, pos)
            pos += _SHIP_TAIL.size
            ships.append(
                Ship(Position(x, y), Velocity(dx, dy), radius, heading, health, speed,
                     cooldown, bullets, score)
            )
        return cls(frame, Bounds(left, top, right, bottom), num_ships, ships)