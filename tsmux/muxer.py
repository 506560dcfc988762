"""Packing encoded video frames into an MPEG-2 transport stream."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Protocol

from .errors import UnsupportedCodecError
from .fields import ContinuityCounter, Pid, RawData
from .frame import Fourcc, FrameFlags
from .packet_codec import TsCodec
from .packets import (
    AdaptationField,
    EsInfo,
    Pat,
    Pes,
    PesHeader,
    Pmt,
    ProgramAssociation,
    TsHeader,
    TsPacket,
)
from .streams import StreamId, StreamType
from .timestamp import ClockReference, Timestamp

PMT_PID = 256
VIDEO_ES_PID = 257
PES_VIDEO_STREAM_ID = 224

_FIRST_PAYLOAD_SIZE = 150
_START_CODE = b"\x00\x00\x01"

_STREAM_TYPES = {
    Fourcc.VIDEO_AVC: StreamType.H264,
    Fourcc.VIDEO_HEVC: StreamType.H265,
}


class EncodedVideoFrame(Protocol):
    """What the muxer needs from a frame."""

    pts: int

    def codec(self) -> Fourcc: ...

    def is_keyframe(self) -> bool: ...

    def has_params(self) -> bool: ...

    def params(self) -> Iterable[bytes]: ...

    def chunks(self) -> Iterable[bytes]: ...

    def has_flag(self, flag: FrameFlags) -> bool: ...


@dataclass
class Mpeg2TsMuxerConfig:
    """Muxer settings."""

    send_aud: bool = False
    send_params_on_each_keyframe: bool = True


def _header(pid: int, counter: int = 0) -> TsHeader:
    return TsHeader(pid=Pid(pid), continuity_counter=ContinuityCounter(counter))


def default_pat_packet() -> TsPacket:
    """PAT announcing one program whose PMT is on ``PMT_PID``."""
    return TsPacket(
        header=_header(Pid.PAT),
        payload=Pat(
            transport_stream_id=1,
            table=[ProgramAssociation(program_num=1, program_map_pid=Pid(PMT_PID))],
        ),
    )


def default_pmt_packet(stream_type: StreamType) -> TsPacket:
    """PMT with one video stream of ``stream_type`` on ``VIDEO_ES_PID``."""
    return TsPacket(
        header=_header(PMT_PID),
        payload=Pmt(
            program_num=1,
            pcr_pid=Pid(VIDEO_ES_PID),
            es_info=[EsInfo(stream_type=stream_type, elementary_pid=Pid(VIDEO_ES_PID))],
        ),
    )


@dataclass
class Mpeg2TsMuxer:
    """Turns a sequence of encoded video frames into transport stream bytes."""

    config: Mpeg2TsMuxerConfig = field(default_factory=Mpeg2TsMuxerConfig)
    video_continuity_counter: ContinuityCounter = field(default_factory=ContinuityCounter)
    header_sent: bool = False

    def __post_init__(self) -> None:
        self._codec = TsCodec()

    def push_frame(self, frame: EncodedVideoFrame) -> bytes:
        """Mux one frame; the first call also emits the PAT and PMT."""
        out = bytearray()
        if not self.header_sent:
            self.header_sent = True
            codec = frame.codec()
            stream_type = _STREAM_TYPES.get(codec)
            if stream_type is None:
                raise UnsupportedCodecError(codec)
            out += self._codec.serialize(default_pat_packet())
            out += self._codec.serialize(default_pmt_packet(stream_type))

        ts = Timestamp(frame.pts * 9 // 100)
        annexb = frame.has_flag(FrameFlags.ANNEXB)

        if self.config.send_params_on_each_keyframe:
            send_params = frame.is_keyframe()
        else:
            send_params = frame.has_params()

        data = bytearray()
        parts = list(frame.params()) if send_params else []
        parts.extend(frame.chunks())
        for part in parts:
            if not annexb:
                data += _START_CODE
            data += part

        for packet in self._video_packets(bytes(data), ts, frame.is_keyframe()):
            out += self._codec.serialize(packet)
        return bytes(out)

    def handle(self, frames: Iterable[EncodedVideoFrame]) -> Iterator[bytes]:
        """Yield the muxed bytes of each frame in turn."""
        for frame in frames:
            yield self.push_frame(frame)

    def _next_header(self) -> TsHeader:
        header = _header(VIDEO_ES_PID, self.video_continuity_counter.value)
        self.video_continuity_counter.increment()
        return header

    def _video_packets(self, data: bytes, ts: Timestamp, keyframe: bool) -> Iterator[TsPacket]:
        first, rest = data[:_FIRST_PAYLOAD_SIZE], data[_FIRST_PAYLOAD_SIZE:]
        adaptation = (
            AdaptationField(
                random_access_indicator=True,
                pcr=ClockReference.from_timestamp(ts),
            )
            if keyframe
            else None
        )
        yield TsPacket(
            header=self._next_header(),
            adaptation_field=adaptation,
            payload=Pes(
                header=PesHeader(stream_id=StreamId(PES_VIDEO_STREAM_ID), pts=ts),
                data=RawData(first),
            ),
        )
        for start in range(0, len(rest), RawData.MAX_SIZE):
            yield TsPacket(
                header=self._next_header(),
                payload=RawData(rest[start:start + RawData.MAX_SIZE]),
            )