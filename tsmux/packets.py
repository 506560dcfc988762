"""Data model of transport stream packets and their payloads."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Union

from .fields import (
    PACKET_SIZE,
    ContinuityCounter,
    LegalTimeWindow,
    PiecewiseRate,
    Pid,
    RawData,
    VersionNumber,
)
from .streams import StreamId, StreamType
from .timestamp import ClockReference, SeamlessSplice, Timestamp

MAX_SYNTAX_SECTION_LEN = 1021
PACKET_START_CODE_PREFIX = 0x00_0001

# pointer field + table header + syntax header + CRC32
_PSI_OVERHEAD = 1 + 3 + 5 + 4


class AdaptationFieldControl(enum.IntEnum):
    """Which of adaptation field and payload a packet carries."""

    RESERVED = 0b00
    PAYLOAD_ONLY = 0b01
    ADAPTATION_FIELD_ONLY = 0b10
    ADAPTATION_FIELD_AND_PAYLOAD = 0b11

    def has_adaptation_field(self) -> bool:
        """Whether an adaptation field follows the header."""
        return self is not AdaptationFieldControl.PAYLOAD_ONLY

    def has_payload(self) -> bool:
        """Whether a payload follows the header."""
        return self is not AdaptationFieldControl.ADAPTATION_FIELD_ONLY


class TransportScramblingControl(enum.IntEnum):
    """Scrambling mode of a packet; unlisted values become unknown members."""

    NOT_SCRAMBLED = 0b00
    SCRAMBLED_WITH_EVEN_KEY = 0b10
    SCRAMBLED_WITH_ODD_KEY = 0b11

    @classmethod
    def _missing_(cls, value: object) -> "TransportScramblingControl | None":
        if not isinstance(value, int) or not 0 <= value <= 0b11:
            return None
        member = int.__new__(cls, value)
        member._name_ = f"UNKNOWN_{value}"
        member._value_ = value
        return cls._value2member_map_.setdefault(value, member)


@dataclass
class AdaptationExtensionField:
    """Optional extension of an adaptation field."""

    legal_time_window: Optional[LegalTimeWindow] = None
    piecewise_rate: Optional[PiecewiseRate] = None
    seamless_splice: Optional[SeamlessSplice] = None

    def external_size(self) -> int:
        """Number of bytes the extension takes on the wire."""
        size = 1 + 1
        if self.legal_time_window is not None:
            size += 2
        if self.piecewise_rate is not None:
            size += 3
        if self.seamless_splice is not None:
            size += 5
        return size


@dataclass
class AdaptationField:
    """Adaptation field of a packet."""

    discontinuity_indicator: bool = False
    random_access_indicator: bool = False
    es_priority_indicator: bool = False
    pcr: Optional[ClockReference] = None
    opcr: Optional[ClockReference] = None
    splice_countdown: Optional[int] = None
    transport_private_data: bytes = b""
    extension: Optional[AdaptationExtensionField] = None

    def external_size(self) -> int:
        """Number of bytes the field takes, its length byte included."""
        size = 1 + 1
        if self.pcr is not None:
            size += 6
        if self.opcr is not None:
            size += 6
        if self.splice_countdown is not None:
            size += 1
        size += len(self.transport_private_data)
        if self.extension is not None:
            size += self.extension.external_size()
        return size


@dataclass
class TsHeader:
    """Four-byte header of a packet."""

    pid: Pid
    transport_error_indicator: bool = False
    transport_priority: bool = False
    transport_scrambling_control: TransportScramblingControl = (
        TransportScramblingControl.NOT_SCRAMBLED
    )
    continuity_counter: ContinuityCounter = field(default_factory=ContinuityCounter)
    adaptation_field_control: AdaptationFieldControl = AdaptationFieldControl.PAYLOAD_ONLY
    payload_unit_start_indicator: bool = False


@dataclass(frozen=True)
class ProgramAssociation:
    """Entry of a program association table."""

    program_num: int
    program_map_pid: Pid


@dataclass
class Pat:
    """Program association table."""

    transport_stream_id: int
    version_number: VersionNumber = field(default_factory=VersionNumber)
    table: List[ProgramAssociation] = field(default_factory=list)

    TABLE_ID: ClassVar[int] = 0


@dataclass(frozen=True)
class Descriptor:
    """Program or elementary stream descriptor."""

    tag: int
    data: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))


@dataclass
class EsInfo:
    """Elementary stream entry of a program map table."""

    stream_type: StreamType
    elementary_pid: Pid
    descriptors: List[Descriptor] = field(default_factory=list)


@dataclass
class Pmt:
    """Program map table."""

    program_num: int
    pcr_pid: Optional[Pid] = None
    version_number: VersionNumber = field(default_factory=VersionNumber)
    program_info: List[Descriptor] = field(default_factory=list)
    es_info: List[EsInfo] = field(default_factory=list)

    TABLE_ID: ClassVar[int] = 2


@dataclass
class PesHeader:
    """Header of a packetized elementary stream packet."""

    stream_id: StreamId
    priority: bool = False
    data_alignment_indicator: bool = False
    copyright: bool = False
    original_or_copy: bool = False
    pts: Optional[Timestamp] = None
    dts: Optional[Timestamp] = None
    escr: Optional[ClockReference] = None
    packet_len: int = 0

    def optional_header_len(self) -> int:
        """Length of the optional header, its three fixed bytes included."""
        size = 3
        if self.pts is not None:
            size += 5
        if self.dts is not None:
            size += 5
        if self.escr is not None:
            size += 6
        return size


@dataclass
class Pes:
    """Start of a packetized elementary stream packet."""

    header: PesHeader
    data: RawData = field(default_factory=RawData)


@dataclass
class Section:
    """Payload of a section stream packet."""

    pointer_field: int
    data: RawData = field(default_factory=RawData)


@dataclass(frozen=True)
class Null:
    """Payload of a null packet."""


@dataclass(frozen=True)
class Stuffing:
    """A run of ``count`` copies of the byte ``value``."""

    value: int
    count: int

    def __bytes__(self) -> bytes:
        return bytes([self.value]) * self.count

    def __len__(self) -> int:
        return self.count


@dataclass(frozen=True)
class PsiTableHeader:
    """Fixed header of a PSI table."""

    table_id: int
    private_bit: bool = False
    syntax_section_indicator: bool = True


@dataclass
class PsiTableSyntax:
    """Syntax section of a PSI table."""

    table_id_extension: int
    version_number: VersionNumber = field(default_factory=VersionNumber)
    current_next_indicator: bool = True
    section_number: int = 0
    last_section_number: int = 0
    table_data: bytes = b""

    def external_size(self) -> int:
        """Number of bytes the section takes, CRC32 included."""
        return 2 + 1 + 1 + 1 + len(self.table_data) + 4


@dataclass
class PsiTable:
    """One table of program specific information."""

    header: PsiTableHeader
    syntax: Optional[PsiTableSyntax] = None


@dataclass
class Psi:
    """Program specific information carried by one payload."""

    tables: List[PsiTable] = field(default_factory=list)


TsPayload = Union[Pat, Pmt, Pes, Section, Null, RawData]


@dataclass
class TsPacket:
    """A transport stream packet."""

    header: TsHeader
    adaptation_field: Optional[AdaptationField] = None
    payload: Optional[TsPayload] = None

    SIZE: ClassVar[int] = PACKET_SIZE
    SYNC_BYTE: ClassVar[int] = 0x47


def _descriptors_len(descriptors: List[Descriptor]) -> int:
    return sum(2 + len(d.data) for d in descriptors)


def payload_len(payload: Optional[TsPayload]) -> int:
    """Number of bytes a payload takes inside a packet."""
    match payload:
        case None | Null():
            return 0
        case RawData():
            return len(payload)
        case Pat():
            return _PSI_OVERHEAD + 4 * len(payload.table)
        case Pmt():
            table_data = 2 + 2 + _descriptors_len(payload.program_info)
            table_data += sum(
                5 + _descriptors_len(info.descriptors) for info in payload.es_info
            )
            return _PSI_OVERHEAD + table_data
        case Pes():
            return 6 + payload.header.optional_header_len() + len(payload.data)
        case Section():
            return 1 + len(payload.data)
    raise TypeError(f"not a packet payload: {type(payload).__name__}")