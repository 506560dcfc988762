"""CRC-32 as used by MPEG-2 PSI sections (polynomial 0x04C11DB7, no reflection)."""

from __future__ import annotations

from typing import Tuple, Union

BytesLike = Union[bytes, bytearray, memoryview]

_POLYNOMIAL = 0x04C11DB7
_MASK = 0xFFFF_FFFF


def _make_table() -> Tuple[int, ...]:
    table = []
    for index in range(256):
        crc = index << 24
        for _ in range(8):
            crc = (crc << 1) ^ _POLYNOMIAL if crc & 0x8000_0000 else crc << 1
        table.append(crc & _MASK)
    return tuple(table)


CRC32_TABLE = _make_table()


class Crc32:
    """Running CRC-32/MPEG-2 checksum."""

    __slots__ = ("_state",)

    def __init__(self) -> None:
        self._state = _MASK

    def __repr__(self) -> str:
        return f"Crc32({self._state:#010x})"

    def update(self, data: BytesLike) -> None:
        """Feed more bytes into the checksum."""
        state = self._state
        for byte in bytes(data):
            state = ((state << 8) & _MASK) ^ CRC32_TABLE[(state >> 24) ^ byte]
        self._state = state

    def value(self) -> int:
        """Current checksum value."""
        return self._state


def crc32(data: BytesLike) -> int:
    """Checksum of ``data`` in one call."""
    checksum = Crc32()
    checksum.update(data)
    return checksum.value()