"""A fixed-size block of input bits for one frame."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

MAX_BYTES = 9
MAX_PLAYERS = 2
BUFFER_SIZE = MAX_BYTES * MAX_PLAYERS
NULL_FRAME = -1

_log = logging.getLogger("rollnet")


def _empty_bits() -> bytearray:
    return bytearray(BUFFER_SIZE)


@dataclass
class GameInput:
    """The input of one frame; ``size`` is the number of meaningful bytes."""

    frame: int = NULL_FRAME
    size: int = 0
    bits: bytearray = field(default_factory=_empty_bits)

    @classmethod
    def for_player(
        cls, frame: int, bits: Optional[bytes], size: int, offset: int
    ) -> "GameInput":
        """Build an input holding one player's ``size`` bytes in slot ``offset``."""
        if size <= 0:
            raise ValueError("input size must be positive")
        if size > MAX_BYTES:
            raise ValueError(f"input size {size} exceeds {MAX_BYTES} bytes")
        start = offset * size
        if offset < 0 or start + size > BUFFER_SIZE:
            raise ValueError(f"player slot {offset} is out of range")
        result = cls(frame=frame, size=size)
        if bits is not None:
            if len(bits) < size:
                raise ValueError("not enough input bytes")
            result.bits[start:start + size] = bits[:size]
        return result

    @classmethod
    def from_bits(cls, frame: int, bits: Optional[bytes], size: int) -> "GameInput":
        """Build an input from ``size`` bytes covering all players."""
        if size <= 0:
            raise ValueError("input size must be positive")
        if size > BUFFER_SIZE:
            raise ValueError(f"input size {size} exceeds {BUFFER_SIZE} bytes")
        result = cls(frame=frame, size=size)
        if bits is not None:
            if len(bits) < size:
                raise ValueError("not enough input bytes")
            result.bits[:size] = bits[:size]
        return result

    def is_null(self) -> bool:
        """Return True when this input belongs to no frame."""
        return self.frame == NULL_FRAME

    def value(self, i: int) -> bool:
        """Return bit ``i``."""
        return bool(self.bits[i // 8] & (1 << (i % 8)))

    def set(self, i: int) -> None:
        """Set bit ``i``."""
        self.bits[i // 8] |= 1 << (i % 8)

    def clear(self, i: int) -> None:
        """Clear bit ``i``."""
        self.bits[i // 8] &= ~(1 << (i % 8)) & 0xFF

    def erase(self) -> None:
        """Clear every bit."""
        self.bits[:] = bytes(BUFFER_SIZE)

    def desc(self, show_frame: bool = True) -> str:
        """Describe the input, listing the indices of the set bits."""
        if not self.size:
            raise ValueError("cannot describe an input of size 0")
        head = f"(frame:{self.frame} size:{self.size} " if show_frame else f"(size:{self.size} "
        set_bits = "".join(f"{i:2d} " for i in range(self.size * 8) if self.value(i))
        return f"{head}{set_bits})"

    def log(self, prefix: str, show_frame: bool = True) -> None:
        """Write the description, after ``prefix``, to the log."""
        _log.debug("%s%s", prefix, self.desc(show_frame))

    def equal(self, other: "GameInput", bitsonly: bool = False) -> bool:
        """Compare with ``other``; frames are ignored when ``bitsonly`` is set."""
        if not self.size or not other.size:
            raise ValueError("cannot compare inputs of size 0")
        if not bitsonly and self.frame != other.frame:
            _log.debug("frames don't match: %d, %d", self.frame, other.frame)
        if self.size != other.size:
            _log.debug("sizes don't match: %d, %d", self.size, other.size)
        same_bits = self.bits[: self.size] == other.bits[: self.size]
        if not same_bits:
            _log.debug("bits don't match")
        return (bitsonly or self.frame == other.frame) and self.size == other.size and same_bits