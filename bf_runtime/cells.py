"""
Cell types for the bfvm runtime.

A cell type is a named unsigned integral width. It decides the natural
value range of a cell, how numeric literals are validated for it, and how
a cell value is written out as raw bytes (big-endian, one byte per 8 bits).

    u8     0 .. 255                  classic byte machine
    u16    0 .. 65535
    u32    0 .. 4294967295
    u64    0 .. 18446744073709551615 extended experimentation
    usize  same as u64               pointer / index values
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict


# Valid digits per supported radix
_RADIX_DIGITS: Dict[int, str] = {
    2: "01",
    8: "01234567",
    10: "0123456789",
    16: "0123456789abcdefABCDEF",
}


@dataclass(frozen=True)
class CellType:
    """An unsigned integral cell width."""
    name: str
    bits: int

    @property
    def min_value(self) -> int:
        return 0

    @property
    def max_value(self) -> int:
        return (1 << self.bits) - 1

    @property
    def byte_width(self) -> int:
        return self.bits // 8

    def coerce(self, value: int) -> int:
        """Truncate a value to the native width (two's-complement wrap)."""
        return value & self.max_value

    def contains(self, value: int) -> bool:
        return self.min_value <= value <= self.max_value

    def from_str_radix(self, text: str, radix: int) -> int:
        """Parse digits in the given radix.

        Accepts an optional leading '+'. Anything else outside the radix
        digit set, an empty digit string, or a value that does not fit the
        width raises ValueError.
        """
        if radix not in _RADIX_DIGITS:
            raise ValueError(f"unsupported radix {radix}")
        digits = text[1:] if text.startswith("+") else text
        if not digits:
            raise ValueError("cannot parse integer from empty string")
        allowed = _RADIX_DIGITS[radix]
        for ch in digits:
            if ch not in allowed:
                raise ValueError(f"invalid digit {ch!r} for radix {radix}")
        value = int(digits, radix)
        if value > self.max_value:
            raise ValueError(f"number too large to fit in {self.name}")
        return value

    def to_bytes(self, value: int) -> bytes:
        return self.coerce(value).to_bytes(self.byte_width, "big")

    def __str__(self) -> str:
        return self.name


U8 = CellType("u8", 8)
U16 = CellType("u16", 16)
U32 = CellType("u32", 32)
U64 = CellType("u64", 64)
USIZE = CellType("usize", 64)

CELL_TYPES: Dict[str, CellType] = {
    t.name: t for t in (U8, U16, U32, U64, USIZE)
}


def get_cell_type(name: str) -> CellType:
    try:
        return CELL_TYPES[name.lower()]
    except KeyError:
        raise KeyError(
            f"unknown cell type {name!r} (expected one of: {', '.join(CELL_TYPES)})"
        ) from None
