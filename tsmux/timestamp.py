"""PTS/DTS timestamps, clock references and seamless splice data."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from .errors import UnexpectedMarkerBitError, ValueTooLargeError

_MARKER_BITS = 1 | 1 << 16 | 1 << 32


def _check(value: int, maximum: int) -> None:
    if value < 0:
        raise ValueError(f"negative value: {value}")
    if value > maximum:
        raise ValueTooLargeError(value)


@dataclass(frozen=True, order=True)
class Timestamp:
    """33-bit presentation or decoding timestamp in 90 kHz units."""

    value: int

    RESOLUTION: ClassVar[int] = 90_000
    MAX: ClassVar[int] = (1 << 33) - 1

    def __post_init__(self) -> None:
        _check(self.value, self.MAX)

    def __int__(self) -> int:
        return self.value

    @classmethod
    def from_marked(cls, value: int) -> "Timestamp":
        """Decode the 40-bit wire form, where marker bits split the value."""
        markers = value & _MARKER_BITS
        if markers != _MARKER_BITS:
            raise UnexpectedMarkerBitError(markers)
        high = (value >> 33) & 0b111
        middle = (value >> 17) & 0x7FFF
        low = (value >> 1) & 0x7FFF
        return cls((high << 30) | (middle << 15) | low)


@dataclass(frozen=True, order=True)
class ClockReference:
    """Program or elementary stream clock reference in 27 MHz units."""

    value: int

    RESOLUTION: ClassVar[int] = 27_000_000
    MAX: ClassVar[int] = ((1 << 33) - 1) * 300 + 0b1_1111_1111

    def __post_init__(self) -> None:
        _check(self.value, self.MAX)

    def __int__(self) -> int:
        return self.value

    @property
    def base(self) -> int:
        """The 90 kHz part of the clock."""
        return self.value // 300

    @property
    def extension(self) -> int:
        """The 27 MHz remainder on top of the base."""
        return self.value % 300

    @classmethod
    def from_timestamp(cls, timestamp: Timestamp) -> "ClockReference":
        """Clock reference at the same instant as a 90 kHz timestamp."""
        return cls(timestamp.value * 300)


@dataclass(frozen=True)
class SeamlessSplice:
    """Seamless splice data of an adaptation field extension."""

    splice_type: int
    dts_next_access_unit: Timestamp

    MAX_SPLICE_TYPE: ClassVar[int] = (1 << 4) - 1

    def __post_init__(self) -> None:
        if not 0 <= self.splice_type <= self.MAX_SPLICE_TYPE:
            raise ValueError(f"Too large splice type: {self.splice_type}")