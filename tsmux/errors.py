"""Exceptions raised while reading or writing MPEG-2 transport streams."""

from __future__ import annotations

from typing import Any


class Mpeg2TsError(Exception):
    """Base class of every error reported by this package."""


class WrongAudioStreamIdError(Mpeg2TsError):
    """A stream id outside the audio range was given where audio was required."""

    def __init__(self, stream_id: int) -> None:
        super().__init__(f"Not an audio ID: {stream_id}")
        self.stream_id = stream_id


class WrongVideoStreamIdError(Mpeg2TsError):
    """A stream id outside the video range was given where video was required."""

    def __init__(self, stream_id: int) -> None:
        super().__init__(f"Not a video ID: {stream_id}")
        self.stream_id = stream_id


class ValueTooLargeError(Mpeg2TsError):
    """A value does not fit into its field."""

    def __init__(self, value: int) -> None:
        super().__init__(f"Value too large: {value}")
        self.value = value


class UnexpectedMarkerBitError(Mpeg2TsError):
    """Marker bits of an encoded timestamp did not have the expected values."""

    def __init__(self, bits: int) -> None:
        super().__init__(f"Marker Bits Check Fail: {bits}")
        self.bits = bits


class WrongSyncByteError(Mpeg2TsError):
    """A packet did not start with the sync byte."""

    def __init__(self) -> None:
        super().__init__("Wrong SyncByte")


class UnknownPidError(Mpeg2TsError):
    """A packet carried a PID that no PAT or PMT has announced."""

    def __init__(self, pid: int) -> None:
        super().__init__(f"Unknown PID: {pid}")
        self.pid = pid


class PsiTableCountZeroError(Mpeg2TsError):
    """A PSI payload held no tables."""

    def __init__(self) -> None:
        super().__init__("Psi table count is zero")


class UnsupportedCodecError(Mpeg2TsError):
    """The muxer was given a frame in a codec it cannot carry."""

    def __init__(self, codec: Any) -> None:
        super().__init__(f"Unsupported Codec {codec}")
        self.codec = codec