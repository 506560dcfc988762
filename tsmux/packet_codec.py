"""Reading and writing transport stream packets, their headers and PES data."""

from __future__ import annotations

import dataclasses
from typing import Dict, Iterator, Optional, Union

from .errors import UnknownPidError, WrongSyncByteError
from .fields import (
    PACKET_SIZE,
    ByteReader,
    BytesLike,
    ContinuityCounter,
    LegalTimeWindow,
    PidKind,
    PiecewiseRate,
    Pid,
    RawData,
)
from .packets import (
    PACKET_START_CODE_PREFIX,
    AdaptationExtensionField,
    AdaptationField,
    AdaptationFieldControl,
    Null,
    Pat,
    Pes,
    PesHeader,
    Pmt,
    Section,
    TransportScramblingControl,
    TsHeader,
    TsPacket,
    TsPayload,
)
from .psi_codec import parse_pat, parse_pmt, serialize_pat, serialize_pmt
from .streams import StreamId
from .timestamp import ClockReference, SeamlessSplice, Timestamp

ReaderLike = Union[ByteReader, BytesLike]

_HEADER_SIZE = 4
_STUFFING = 0xFF
_RAW_PIDS = frozenset(range(0x01, 0x20)) | {0x1FFB}
_BASE_MAX = (1 << 33) - 1


def _as_reader(source: ReaderLike) -> ByteReader:
    if isinstance(source, ByteReader):
        return source
    return ByteReader(source)


# --- packet header -------------------------------------------------------


def parse_ts_header(reader: ReaderLike) -> TsHeader:
    """Read the four-byte packet header, sync byte included."""
    reader = _as_reader(reader)
    if reader.get_u8() != TsPacket.SYNC_BYTE:
        raise WrongSyncByteError()
    word = reader.get_u16()
    flags = reader.get_u8()
    return TsHeader(
        pid=Pid(word & Pid.MAX),
        transport_error_indicator=bool(word & 0x8000),
        transport_priority=bool(word & 0x2000),
        transport_scrambling_control=TransportScramblingControl(flags >> 6),
        continuity_counter=ContinuityCounter(flags & 0b1111),
        adaptation_field_control=AdaptationFieldControl((flags >> 4) & 0b11),
        payload_unit_start_indicator=bool(word & 0x4000),
    )


def serialize_ts_header(header: TsHeader) -> bytes:
    """Write the four-byte packet header, sync byte included."""
    word = (
        (int(header.transport_error_indicator) << 15)
        | (int(header.payload_unit_start_indicator) << 14)
        | (int(header.transport_priority) << 13)
        | header.pid.value
    )
    flags = (
        (int(header.transport_scrambling_control) << 6)
        | (int(header.adaptation_field_control) << 4)
        | int(header.continuity_counter)
    )
    return bytes([TsPacket.SYNC_BYTE]) + word.to_bytes(2, "big") + bytes([flags])


# --- timestamps and clocks -----------------------------------------------


def parse_pts(reader: ReaderLike) -> Timestamp:
    """Read a five-byte PTS or DTS."""
    return Timestamp.from_marked(_as_reader(reader).get_uint(5))


def serialize_pts(timestamp: Timestamp, check_bits: int) -> bytes:
    """Write a five-byte PTS or DTS whose top four bits are ``check_bits``."""
    if not 0 <= check_bits <= 0b1111:
        raise ValueError(f"check bits out of range: {check_bits}")
    value = timestamp.value
    word = (
        (check_bits << 36)
        | (((value >> 30) & 0b111) << 33)
        | (1 << 32)
        | (((value >> 15) & 0x7FFF) << 17)
        | (1 << 16)
        | ((value & 0x7FFF) << 1)
        | 1
    )
    return word.to_bytes(5, "big")


def _split_clock(clock: ClockReference) -> tuple:
    base, extension = divmod(clock.value, 300)
    if base > _BASE_MAX:
        raise ValueError(f"clock base too large: {base}")
    return base, extension


def parse_pcr(reader: ReaderLike) -> ClockReference:
    """Read a six-byte program clock reference."""
    word = _as_reader(reader).get_uint(6)
    base = word >> 15
    extension = word & 0x1FF
    return ClockReference(base * 300 + extension)


def serialize_pcr(clock: ClockReference) -> bytes:
    """Write a six-byte program clock reference."""
    base, extension = _split_clock(clock)
    word = (base << 15) | (0b11_1111 << 9) | extension
    return word.to_bytes(6, "big")


def parse_escr(reader: ReaderLike) -> ClockReference:
    """Read a six-byte elementary stream clock reference."""
    word = _as_reader(reader).get_uint(6)
    if word >> 46 != 0:
        raise ValueError("Unexpected ESCR reserved bits")
    if word & 1 != 1:
        raise ValueError("Unexpected ESCR marker bit")
    extension = (word >> 1) & 0x1FF
    word >>= 10
    if word & 1 != 1 or (word >> 16) & 1 != 1 or (word >> 32) & 1 != 1:
        raise ValueError("Unexpected ESCR marker bit")
    low = (word >> 1) & 0x7FFF
    middle = (word >> 17) & 0x7FFF
    high = (word >> 33) & 0b111
    base = low | (middle << 15) | (high << 30)
    return ClockReference(base * 300 + extension)


def serialize_escr(clock: ClockReference) -> bytes:
    """Write a six-byte elementary stream clock reference."""
    base, extension = _split_clock(clock)
    marked = (
        (((base >> 30) & 0b111) << 33)
        | (1 << 32)
        | (((base >> 15) & 0x7FFF) << 17)
        | (1 << 16)
        | ((base & 0x7FFF) << 1)
        | 1
    )
    word = (marked << 10) | (extension << 1) | 1
    return word.to_bytes(6, "big")


# --- adaptation field extension parts --------------------------------------


def parse_legal_time_window(reader: ReaderLike) -> LegalTimeWindow:
    """Read a two-byte legal time window."""
    word = _as_reader(reader).get_u16()
    return LegalTimeWindow(is_valid=bool(word & 0x8000), offset=word & 0x7FFF)


def serialize_legal_time_window(window: LegalTimeWindow) -> bytes:
    """Write a two-byte legal time window."""
    return ((int(window.is_valid) << 15) | window.offset).to_bytes(2, "big")


def parse_piecewise_rate(reader: ReaderLike) -> PiecewiseRate:
    """Read a three-byte piecewise rate."""
    return PiecewiseRate(_as_reader(reader).get_uint(3) & PiecewiseRate.MAX)


def serialize_piecewise_rate(rate: PiecewiseRate) -> bytes:
    """Write a three-byte piecewise rate with its reserved bits set."""
    return ((0b11 << 22) | rate.value).to_bytes(3, "big")


def parse_seamless_splice(reader: ReaderLike) -> SeamlessSplice:
    """Read a five-byte seamless splice."""
    word = _as_reader(reader).get_uint(5)
    return SeamlessSplice(
        splice_type=word >> 36,
        dts_next_access_unit=Timestamp.from_marked(word & 0x0F_FFFF_FFFF),
    )


def serialize_seamless_splice(splice: SeamlessSplice) -> bytes:
    """Write a five-byte seamless splice."""
    return serialize_pts(splice.dts_next_access_unit, splice.splice_type)


def parse_adaptation_extension(reader: ReaderLike) -> AdaptationExtensionField:
    """Read an adaptation field extension, its length byte included."""
    reader = _as_reader(reader)
    body = reader.take(reader.get_u8())
    flags = body.get_u8()
    return AdaptationExtensionField(
        legal_time_window=parse_legal_time_window(body) if flags & 0x80 else None,
        piecewise_rate=parse_piecewise_rate(body) if flags & 0x40 else None,
        seamless_splice=parse_seamless_splice(body) if flags & 0x20 else None,
    )


def serialize_adaptation_extension(extension: AdaptationExtensionField) -> bytes:
    """Write an adaptation field extension, its length byte included."""
    flags = (
        (int(extension.legal_time_window is not None) << 7)
        | (int(extension.piecewise_rate is not None) << 6)
        | (int(extension.seamless_splice is not None) << 5)
        | 0b1_1111
    )
    body = bytes([flags])
    if extension.legal_time_window is not None:
        body += serialize_legal_time_window(extension.legal_time_window)
    if extension.piecewise_rate is not None:
        body += serialize_piecewise_rate(extension.piecewise_rate)
    if extension.seamless_splice is not None:
        body += serialize_seamless_splice(extension.seamless_splice)
    return bytes([len(body)]) + body


# --- adaptation field ----------------------------------------------------


def parse_adaptation_field(reader: ReaderLike) -> Optional[AdaptationField]:
    """Read an adaptation field; a zero length yields ``None``."""
    reader = _as_reader(reader)
    length = reader.get_u8()
    if length == 0:
        return None
    body = reader.take(length)
    flags = body.get_u8()
    pcr = parse_pcr(body) if flags & 0x10 else None
    opcr = parse_pcr(body) if flags & 0x08 else None
    splice_countdown = body.get_i8() if flags & 0x04 else None
    private_data = body.get_bytes(body.get_u8()) if flags & 0x02 else b""
    extension = parse_adaptation_extension(body) if flags & 0x01 else None
    return AdaptationField(
        discontinuity_indicator=bool(flags & 0x80),
        random_access_indicator=bool(flags & 0x40),
        es_priority_indicator=bool(flags & 0x20),
        pcr=pcr,
        opcr=opcr,
        splice_countdown=splice_countdown,
        transport_private_data=private_data,
        extension=extension,
    )


def _adaptation_body(field: AdaptationField) -> bytes:
    private_data = bytes(field.transport_private_data)
    flags = (
        (int(field.discontinuity_indicator) << 7)
        | (int(field.random_access_indicator) << 6)
        | (int(field.es_priority_indicator) << 5)
        | (int(field.pcr is not None) << 4)
        | (int(field.opcr is not None) << 3)
        | (int(field.splice_countdown is not None) << 2)
        | (int(bool(private_data)) << 1)
        | int(field.extension is not None)
    )
    body = bytes([flags])
    if field.pcr is not None:
        body += serialize_pcr(field.pcr)
    if field.opcr is not None:
        body += serialize_pcr(field.opcr)
    if field.splice_countdown is not None:
        if not -128 <= field.splice_countdown <= 127:
            raise ValueError(f"splice countdown out of range: {field.splice_countdown}")
        body += bytes([field.splice_countdown & 0xFF])
    if private_data:
        if len(private_data) > 0xFF:
            raise ValueError(f"private data too long: {len(private_data)} bytes")
        body += bytes([len(private_data)]) + private_data
    if field.extension is not None:
        body += serialize_adaptation_extension(field.extension)
    return body


def serialize_adaptation_field(
    field: Optional[AdaptationField], total_len: Optional[int] = None
) -> bytes:
    """Write an adaptation field filling ``total_len`` bytes, padded with stuffing.

    Without ``total_len`` the field takes only the bytes it needs.
    """
    if field is None:
        if not total_len:
            return b""
        if total_len == 1:
            return b"\x00"
        return bytes([total_len - 1, 0]) + bytes([_STUFFING]) * (total_len - 2)
    body = _adaptation_body(field)
    needed = 1 + len(body)
    if total_len is None:
        total_len = needed
    if total_len < needed:
        raise ValueError(
            f"No space for adaptation field: required={needed}, free={total_len}"
        )
    if total_len - 1 > 0xFF:
        raise ValueError(f"adaptation field too long: {total_len} bytes")
    return bytes([total_len - 1]) + body + bytes([_STUFFING]) * (total_len - needed)


# --- PES -----------------------------------------------------------------


def parse_pes_header(reader: ReaderLike) -> PesHeader:
    """Read a PES header with its optional part."""
    reader = _as_reader(reader)
    if reader.get_uint(3) != PACKET_START_CODE_PREFIX:
        raise ValueError("Unexpected packet start code prefix")
    stream_id = StreamId(reader.get_u8())
    packet_len = reader.get_u16()

    flags = reader.get_u8()
    if flags & 0b1100_0000 != 0b1000_0000:
        raise ValueError("Unexpected marker bits")
    if (flags & 0b0011_0000) >> 4 != 0:
        raise ValueError("Scrambled PES packets are not supported")

    flags2 = reader.get_u8()
    pts_flag = bool(flags2 & 0x80)
    dts_flag = bool(flags2 & 0x40)
    if dts_flag and not pts_flag:
        raise ValueError("DTS present without PTS")
    escr_flag = bool(flags2 & 0x20)
    if flags2 & 0b0001_1111:
        raise ValueError("Unsupported PES optional fields")

    body = reader.take(reader.get_u8())
    pts = parse_pts(body) if pts_flag else None
    dts = parse_pts(body) if dts_flag else None
    escr = parse_escr(body) if escr_flag else None

    return PesHeader(
        stream_id=stream_id,
        priority=bool(flags & 0b1000),
        data_alignment_indicator=bool(flags & 0b0100),
        copyright=bool(flags & 0b0010),
        original_or_copy=bool(flags & 0b0001),
        pts=pts,
        dts=dts,
        escr=escr,
        packet_len=packet_len,
    )


def serialize_pes_header(header: PesHeader) -> bytes:
    """Write a PES header with its optional part."""
    if header.dts is not None and header.pts is None:
        raise ValueError("DTS present without PTS")
    flags = (
        0b1000_0000
        | (int(header.priority) << 3)
        | (int(header.data_alignment_indicator) << 2)
        | (int(header.copyright) << 1)
        | int(header.original_or_copy)
    )
    flags2 = (
        (int(header.pts is not None) << 7)
        | (int(header.dts is not None) << 6)
        | (int(header.escr is not None) << 5)
    )
    data = (
        PACKET_START_CODE_PREFIX.to_bytes(3, "big")
        + bytes([int(header.stream_id)])
        + header.packet_len.to_bytes(2, "big")
        + bytes([flags, flags2, header.optional_header_len() - 3])
    )
    if header.pts is not None:
        data += serialize_pts(header.pts, 3 if header.dts is not None else 2)
    if header.dts is not None:
        data += serialize_pts(header.dts, 1)
    if header.escr is not None:
        data += serialize_escr(header.escr)
    return data


def parse_pes(reader: ReaderLike) -> Pes:
    """Read a PES header and take the rest of the reader as data."""
    reader = _as_reader(reader)
    header = parse_pes_header(reader)
    return Pes(header, RawData(reader.get_bytes(reader.remaining())))


def serialize_pes(pes: Pes) -> bytes:
    """Write a PES header followed by its data."""
    return serialize_pes_header(pes.header) + bytes(pes.data)


# --- packets -------------------------------------------------------------


def _serialize_payload(payload: Optional[TsPayload]) -> bytes:
    match payload:
        case None | Null():
            return b""
        case RawData():
            return bytes(payload)
        case Pat():
            return serialize_pat(payload)
        case Pmt():
            return serialize_pmt(payload)
        case Pes():
            return serialize_pes(payload)
        case Section():
            return bytes([payload.pointer_field]) + bytes(payload.data)
    raise TypeError(f"not a packet payload: {type(payload).__name__}")


class TsCodec:
    """Packet reader and writer that remembers which PIDs carry PMTs and PES."""

    def __init__(self) -> None:
        self.pids: Dict[Pid, PidKind] = {}

    def __repr__(self) -> str:
        return f"TsCodec(pids={len(self.pids)})"

    def parse(self, data: ReaderLike) -> TsPacket:
        """Read one 188-byte packet, learning PIDs from PAT and PMT payloads."""
        reader = ByteReader(_as_reader(data).get_bytes(PACKET_SIZE))
        header = parse_ts_header(reader)
        control = header.adaptation_field_control

        adaptation_field = (
            parse_adaptation_field(reader) if control.has_adaptation_field() else None
        )
        payload = self._parse_payload(header, reader) if control.has_payload() else None
        return TsPacket(header, adaptation_field, payload)

    def _parse_payload(self, header: TsHeader, reader: ByteReader) -> TsPayload:
        pid = header.pid.value
        if pid == Pid.PAT:
            pat = parse_pat(reader)
            for association in pat.table:
                self.pids[association.program_map_pid] = PidKind.PMT
            return pat
        if pid == Pid.NULL:
            return Null()
        if pid in _RAW_PIDS:
            return RawData(reader.get_bytes(reader.remaining()))

        kind = self.pids.get(header.pid)
        if kind is None:
            raise UnknownPidError(pid)
        if kind is PidKind.PMT:
            pmt = parse_pmt(reader)
            for info in pmt.es_info:
                self.pids[info.elementary_pid] = PidKind.PES
            return pmt
        if header.payload_unit_start_indicator:
            return parse_pes(reader)
        return RawData(reader.get_bytes(reader.remaining()))

    def serialize(self, packet: TsPacket) -> bytes:
        """Write one packet, filling it to 188 bytes with adaptation stuffing."""
        payload = _serialize_payload(packet.payload)
        free_len = PACKET_SIZE - _HEADER_SIZE - len(payload)
        if free_len < 0:
            raise ValueError(f"payload too large: {len(payload)} bytes")

        has_adaptation = packet.adaptation_field is not None or free_len > 0
        has_payload = packet.payload is not None
        if has_adaptation and has_payload:
            control = AdaptationFieldControl.ADAPTATION_FIELD_AND_PAYLOAD
        elif has_adaptation:
            control = AdaptationFieldControl.ADAPTATION_FIELD_ONLY
        elif has_payload:
            control = AdaptationFieldControl.PAYLOAD_ONLY
        else:
            raise ValueError("Reserved for future use")

        header = dataclasses.replace(
            packet.header,
            adaptation_field_control=control,
            payload_unit_start_indicator=not isinstance(
                packet.payload, (RawData, Null, type(None))
            ),
        )
        adaptation = (
            serialize_adaptation_field(packet.adaptation_field, free_len)
            if has_adaptation
            else b""
        )
        return serialize_ts_header(header) + adaptation + payload

    def iter_packets(self, data: ReaderLike) -> Iterator[TsPacket]:
        """Parse every whole packet in ``data``; a trailing partial packet is left."""
        reader = _as_reader(data)
        while reader.remaining() >= PACKET_SIZE:
            yield self.parse(reader)