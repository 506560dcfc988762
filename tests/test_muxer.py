from dataclasses import dataclass

import pytest

from tsmux.errors import UnsupportedCodecError
from tsmux.fields import RawData
from tsmux.frame import Fourcc, FrameFlags, Mpeg2TsFrame, Mpeg2TsSource
from tsmux.muxer import (
    PES_VIDEO_STREAM_ID,
    PMT_PID,
    VIDEO_ES_PID,
    Mpeg2TsMuxer,
    Mpeg2TsMuxerConfig,
    default_pat_packet,
    default_pmt_packet,
)
from tsmux.packet_codec import TsCodec
from tsmux.packets import Pat, Pes, Pmt
from tsmux.streams import StreamType
from tsmux.timestamp import ClockReference, Timestamp

PARAMS = (b"\x67\x42\x00", b"\x68\xce")


def _frame(pts=0, keyframe=True, payload=b"\x65frame", codec=Fourcc.VIDEO_AVC, params=PARAMS):
    source = Mpeg2TsSource(codec=codec, params=params)
    return Mpeg2TsFrame(pts=pts, dts=pts, keyframe=keyframe, payload=payload, source=source)


@dataclass
class _PlainFrame:
    pts: int
    keyframe: bool
    payload: bytes
    param: bytes

    def codec(self):
        return Fourcc.VIDEO_AVC

    def is_keyframe(self):
        return self.keyframe

    def has_params(self):
        return True

    def params(self):
        return [self.param]

    def chunks(self):
        return [self.payload]

    def has_flag(self, flag):
        return flag in (FrameFlags.ENCODED | FrameFlags.VIDEO_STREAM)


def _parse(data):
    return list(TsCodec().iter_packets(data))


def _video(packets):
    return [p for p in packets if p.header.pid.value == VIDEO_ES_PID]


def _video_bytes(packets):
    return b"".join(
        bytes(p.payload.data) if isinstance(p.payload, Pes) else bytes(p.payload)
        for p in _video(packets)
    )


def test_output_is_whole_packets():
    data = Mpeg2TsMuxer().push_frame(_frame(payload=bytes(500)))
    assert len(data) % 188 == 0
    assert all(data[i] == 0x47 for i in range(0, len(data), 188))


def test_pat_packet_header_bytes():
    data = Mpeg2TsMuxer().push_frame(_frame())
    assert data[:4] == bytes([0x47, 0x40, 0x00, 0x30])


def test_first_frame_starts_with_pat_and_pmt():
    packets = _parse(Mpeg2TsMuxer().push_frame(_frame()))
    pat, pmt = packets[0].payload, packets[1].payload
    assert isinstance(pat, Pat)
    assert pat.table[0].program_map_pid.value == PMT_PID
    assert isinstance(pmt, Pmt)
    assert pmt.pcr_pid.value == VIDEO_ES_PID
    assert pmt.es_info[0].stream_type is StreamType.H264
    assert pmt.es_info[0].elementary_pid.value == VIDEO_ES_PID


def test_hevc_stream_type():
    packets = _parse(Mpeg2TsMuxer().push_frame(_frame(codec=Fourcc.VIDEO_HEVC)))
    assert packets[1].payload.es_info[0].stream_type is StreamType.H265


def test_header_only_once():
    muxer = Mpeg2TsMuxer()
    muxer.push_frame(_frame())
    second = _parse_with_state(muxer, _frame(pts=40_000, keyframe=False))
    assert all(p.header.pid.value == VIDEO_ES_PID for p in second)


def _parse_with_state(muxer, frame):
    codec = TsCodec()
    list(codec.iter_packets(Mpeg2TsMuxer().push_frame(_frame())))
    return list(codec.iter_packets(muxer.push_frame(frame)))


def test_unsupported_codec():
    with pytest.raises(UnsupportedCodecError):
        Mpeg2TsMuxer().push_frame(_frame(codec=Fourcc("vp09")))


def test_keyframe_sends_params_and_payload():
    packets = _parse(Mpeg2TsMuxer().push_frame(_frame(payload=b"\x65body")))
    assert _video_bytes(packets) == PARAMS[0] + PARAMS[1] + b"\x65body"


def test_non_keyframe_skips_params_by_default():
    packets = _parse(Mpeg2TsMuxer().push_frame(_frame(keyframe=False, payload=b"\x41p")))
    assert _video_bytes(packets) == b"\x41p"


def test_params_sent_when_present_if_configured():
    muxer = Mpeg2TsMuxer(Mpeg2TsMuxerConfig(send_params_on_each_keyframe=False))
    packets = _parse(muxer.push_frame(_frame(keyframe=False, payload=b"\x41p")))
    assert _video_bytes(packets) == PARAMS[0] + PARAMS[1] + b"\x41p"


def test_start_codes_added_without_annexb():
    frame = _PlainFrame(pts=0, keyframe=True, payload=b"\x65x", param=b"\x67y")
    packets = _parse(Mpeg2TsMuxer().push_frame(frame))
    assert _video_bytes(packets) == b"\x00\x00\x01\x67y\x00\x00\x01\x65x"


def test_pes_header_and_pcr_on_keyframe():
    packets = _video(_parse(Mpeg2TsMuxer().push_frame(_frame(pts=1_000_000))))
    first = packets[0]
    assert first.header.payload_unit_start_indicator
    assert first.payload.header.stream_id.value == PES_VIDEO_STREAM_ID
    assert first.payload.header.pts == Timestamp(90_000)
    assert first.adaptation_field.random_access_indicator
    assert first.adaptation_field.pcr == ClockReference.from_timestamp(Timestamp(90_000))


def test_non_keyframe_has_no_pcr():
    packets = _video(_parse(Mpeg2TsMuxer().push_frame(_frame(keyframe=False))))
    field = packets[0].adaptation_field
    assert field is None or field.pcr is None


def test_large_payload_split_and_reassembled():
    payload = bytes(range(256)) * 4
    packets = _parse(Mpeg2TsMuxer().push_frame(_frame(keyframe=False, payload=payload)))
    video = _video(packets)
    assert _video_bytes(packets) == payload
    assert len(video[0].payload.data) == 150
    assert all(len(p.payload) == RawData.MAX_SIZE for p in video[1:-1])


def test_handle_yields_one_chunk_per_frame():
    muxer = Mpeg2TsMuxer()
    chunks = list(muxer.handle([_frame(), _frame(pts=40_000, keyframe=False)]))
    assert len(chunks) == 2
    assert _parse(chunks[0])[0].header.pid.value == 0
    single = Mpeg2TsMuxer()
    assert chunks[0] == single.push_frame(_frame())


def test_default_packets():
    pat = default_pat_packet()
    pmt = default_pmt_packet(StreamType.H265)
    assert pat.header.pid.value == 0
    assert pat.payload.transport_stream_id == 1
    assert pmt.header.pid.value == PMT_PID
    assert pmt.payload.es_info[0].stream_type is StreamType.H265


def test_default_packets_round_trip():
    codec = TsCodec()
    packets = list(codec.iter_packets(
        codec.serialize(default_pat_packet()) + codec.serialize(default_pmt_packet(StreamType.H264))
    ))
    assert packets[0].payload == default_pat_packet().payload
    assert packets[1].payload == default_pmt_packet(StreamType.H264).payload