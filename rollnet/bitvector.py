"""Bit-level reading and writing over a byte buffer."""

from __future__ import annotations

NIBBLE_SIZE = 8


class BitVector:
    """A cursor over a mutable byte buffer that reads and writes single bits.

    Bit ``n`` lives in byte ``n // 8`` at position ``n % 8``, least
    significant bit first.  Every operation advances ``offset``.
    """

    def __init__(self, data: bytearray, offset: int = 0) -> None:
        self.data = data
        self.offset = offset

    def _locate(self) -> tuple[int, int]:
        return self.offset // 8, 1 << (self.offset % 8)

    def set_bit(self) -> None:
        """Set the bit at the cursor and advance."""
        index, mask = self._locate()
        self.data[index] |= mask
        self.offset += 1

    def clear_bit(self) -> None:
        """Clear the bit at the cursor and advance."""
        index, mask = self._locate()
        self.data[index] &= ~mask & 0xFF
        self.offset += 1

    def write_nibblet(self, nibble: int) -> None:
        """Write the low ``NIBBLE_SIZE`` bits of ``nibble``, least significant first."""
        if nibble >= 1 << NIBBLE_SIZE:
            raise ValueError(f"nibblet {nibble} does not fit in {NIBBLE_SIZE} bits")
        for i in range(NIBBLE_SIZE):
            if nibble & (1 << i):
                self.set_bit()
            else:
                self.clear_bit()

    def read_bit(self) -> int:
        """Return the bit at the cursor (0 or 1) and advance."""
        index, mask = self._locate()
        bit = 1 if self.data[index] & mask else 0
        self.offset += 1
        return bit

    def read_nibblet(self) -> int:
        """Read ``NIBBLE_SIZE`` bits written by :meth:`write_nibblet`."""
        return sum(self.read_bit() << i for i in range(NIBBLE_SIZE))