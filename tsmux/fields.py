"""Small bounded values of the transport stream format and a byte reader."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import ClassVar, Iterator, Union

BytesLike = Union[bytes, bytearray, memoryview]

PACKET_SIZE = 188
_HEADER_SIZE = 4


def _check_range(name: str, value: int, maximum: int) -> None:
    if not 0 <= value <= maximum:
        raise ValueError(f"Too large {name}: {value} (max {maximum})")


class PidKind(enum.Enum):
    """What the packets of a PID carry."""

    PMT = "pmt"
    PES = "pes"


@dataclass(frozen=True, order=True)
class Pid:
    """Packet identifier (13 bits)."""

    value: int

    MAX: ClassVar[int] = (1 << 13) - 1
    PAT: ClassVar[int] = 0
    NULL: ClassVar[int] = 0x1FFF

    def __post_init__(self) -> None:
        _check_range("PID", self.value, self.MAX)

    def __int__(self) -> int:
        return self.value


@dataclass(order=True)
class ContinuityCounter:
    """Four-bit packet continuity counter that wraps around."""

    value: int = 0

    MAX: ClassVar[int] = (1 << 4) - 1

    def __post_init__(self) -> None:
        _check_range("counter", self.value, self.MAX)

    def __int__(self) -> int:
        return self.value

    def increment(self) -> None:
        """Advance the counter, wrapping to zero after the maximum."""
        self.value = (self.value + 1) & self.MAX


@dataclass(order=True)
class VersionNumber:
    """Five-bit version number of a PSI table syntax section."""

    value: int = 0

    MAX: ClassVar[int] = (1 << 5) - 1

    def __post_init__(self) -> None:
        _check_range("version number", self.value, self.MAX)

    def __int__(self) -> int:
        return self.value

    def increment(self) -> None:
        """Advance the version, wrapping to zero after the maximum."""
        self.value = (self.value + 1) & self.MAX


@dataclass(frozen=True)
class LegalTimeWindow:
    """Legal time window of an adaptation field extension."""

    is_valid: bool
    offset: int

    MAX_OFFSET: ClassVar[int] = (1 << 15) - 1

    def __post_init__(self) -> None:
        _check_range("offset", self.offset, self.MAX_OFFSET)


@dataclass(frozen=True, order=True)
class PiecewiseRate:
    """Piecewise rate of an adaptation field extension (22 bits)."""

    value: int

    MAX: ClassVar[int] = (1 << 22) - 1

    def __post_init__(self) -> None:
        _check_range("rate", self.value, self.MAX)

    def __int__(self) -> int:
        return self.value


@dataclass(frozen=True)
class RawData:
    """Payload bytes that fit into a single packet."""

    data: bytes = b""

    MAX_SIZE: ClassVar[int] = PACKET_SIZE - _HEADER_SIZE

    def __post_init__(self) -> None:
        data = bytes(self.data)
        if len(data) > self.MAX_SIZE:
            raise ValueError(
                f"Too large: actual={len(data)} bytes, max={self.MAX_SIZE} bytes"
            )
        object.__setattr__(self, "data", data)

    def __len__(self) -> int:
        return len(self.data)

    def __bytes__(self) -> bytes:
        return self.data

    def __iter__(self) -> Iterator[int]:
        return iter(self.data)


class ByteReader:
    """Big-endian reader that consumes bytes from the front of a buffer."""

    __slots__ = ("_data", "_pos")

    def __init__(self, data: BytesLike = b"") -> None:
        self._data = bytes(data)
        self._pos = 0

    def __repr__(self) -> str:
        return f"ByteReader(remaining={self.remaining()})"

    def remaining(self) -> int:
        """Number of bytes not yet consumed."""
        return len(self._data) - self._pos

    def _read(self, count: int) -> bytes:
        if count < 0:
            raise ValueError(f"negative byte count: {count}")
        end = self._pos + count
        if end > len(self._data):
            raise EOFError(
                f"need {count} bytes, only {self.remaining()} remaining"
            )
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def get_u8(self) -> int:
        """Read an unsigned byte."""
        return self._read(1)[0]

    def get_i8(self) -> int:
        """Read a signed byte."""
        return int.from_bytes(self._read(1), "big", signed=True)

    def get_u16(self) -> int:
        """Read an unsigned 16-bit big-endian integer."""
        return int.from_bytes(self._read(2), "big")

    def get_u32(self) -> int:
        """Read an unsigned 32-bit big-endian integer."""
        return int.from_bytes(self._read(4), "big")

    def get_uint(self, nbytes: int) -> int:
        """Read an unsigned big-endian integer of 1 to 8 bytes."""
        if not 1 <= nbytes <= 8:
            raise ValueError(f"integer width must be 1..8 bytes, got {nbytes}")
        return int.from_bytes(self._read(nbytes), "big")

    def get_bytes(self, count: int) -> bytes:
        """Read the next ``count`` bytes."""
        return self._read(count)

    def peek_u8(self) -> int:
        """Return the next byte without consuming it."""
        if self._pos >= len(self._data):
            raise EOFError("need 1 byte, only 0 remaining")
        return self._data[self._pos]

    def take(self, count: int) -> "ByteReader":
        """Split off the next ``count`` bytes as a separate reader."""
        return ByteReader(self._read(count))