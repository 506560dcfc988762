"""Encoded video frames as they travel into and out of the muxer."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import ClassVar, Iterator, Tuple


@dataclass(frozen=True)
class Fourcc:
    """Four-character codec code."""

    code: str

    VIDEO_AVC: ClassVar["Fourcc"]
    VIDEO_HEVC: ClassVar["Fourcc"]

    def __post_init__(self) -> None:
        if len(self.code) != 4 or not self.code.isascii():
            raise ValueError(f"fourcc must be four ASCII characters, got {self.code!r}")

    def __str__(self) -> str:
        return self.code


Fourcc.VIDEO_AVC = Fourcc("avc1")
Fourcc.VIDEO_HEVC = Fourcc("hvc1")


class FrameFlags(enum.Flag):
    """Properties of a frame."""

    NONE = 0
    KEYFRAME = enum.auto()
    ENCODED = enum.auto()
    ANNEXB = enum.auto()
    VIDEO_STREAM = enum.auto()
    AUDIO_STREAM = enum.auto()


@dataclass(frozen=True)
class Mpeg2TsSource:
    """Stream a frame came from: its codec and parameter sets."""

    codec: Fourcc
    params: Tuple[bytes, ...] = ()
    name: str = ""
    url: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", tuple(bytes(p) for p in self.params))


@dataclass(frozen=True)
class Mpeg2TsFrame:
    """One Annex B encoded video frame."""

    pts: int
    dts: int
    keyframe: bool
    payload: bytes
    source: Mpeg2TsSource = field(compare=True)

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", bytes(self.payload))

    def params(self) -> Iterator[bytes]:
        """Parameter sets of the stream."""
        return iter(self.source.params)

    def chunks(self) -> Iterator[bytes]:
        """Data chunks of the frame; a single payload here."""
        yield self.payload

    def codec(self) -> Fourcc:
        """Codec of the stream."""
        return self.source.codec

    def flags(self) -> FrameFlags:
        """Flags describing the frame."""
        flags = FrameFlags.ENCODED | FrameFlags.ANNEXB | FrameFlags.VIDEO_STREAM
        if self.keyframe:
            flags |= FrameFlags.KEYFRAME
        return flags

    def timestamp(self) -> int:
        """Decoding timestamp."""
        return self.dts

    def is_keyframe(self) -> bool:
        """Whether the frame can be decoded on its own."""
        return self.has_flag(FrameFlags.KEYFRAME)

    def has_params(self) -> bool:
        """Whether the stream carries any parameter sets."""
        return bool(self.source.params)

    def has_flag(self, flag: FrameFlags) -> bool:
        """Whether every bit of ``flag`` is set."""
        return flag in self.flags()