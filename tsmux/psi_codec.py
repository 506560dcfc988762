"""Reading and writing program specific information: PAT, PMT and their parts."""

from __future__ import annotations

from typing import Tuple, Union

from .crc32 import crc32
from .errors import PsiTableCountZeroError
from .fields import ByteReader, BytesLike, Pid, VersionNumber
from .packets import (
    MAX_SYNTAX_SECTION_LEN,
    Descriptor,
    EsInfo,
    Pat,
    Pmt,
    ProgramAssociation,
    Psi,
    PsiTable,
    PsiTableHeader,
    PsiTableSyntax,
)
from .streams import StreamType

ReaderLike = Union[ByteReader, BytesLike]

_PID_RESERVED = 0b1110_0000_0000_0000
_LEN_RESERVED = 0b1111_0000_0000_0000
_LEN_UNUSED = 0b0000_1100_0000_0000
_LEN_MASK = 0b0000_0011_1111_1111
_HEADER_RESERVED = 0b0011_0000_0000_0000
_SYNTAX_RESERVED = 0b1100_0000
_NO_PCR_PID = 0x1FFF
_STUFFING = 0xFF


def _as_reader(source: ReaderLike) -> ByteReader:
    if isinstance(source, ByteReader):
        return source
    return ByteReader(source)


def _u16(value: int) -> bytes:
    return value.to_bytes(2, "big")


def _check_length_word(word: int, what: str) -> int:
    if word & _LEN_RESERVED != _LEN_RESERVED:
        raise ValueError("Unexpected reserved bits")
    if word & _LEN_UNUSED:
        raise ValueError(f"Unexpected {what} length unused bits")
    return word & _LEN_MASK


# --- PID -----------------------------------------------------------------


def parse_pid(reader: ReaderLike) -> Pid:
    """Read a PID preceded by its three reserved bits."""
    word = _as_reader(reader).get_u16()
    if word & _PID_RESERVED != _PID_RESERVED:
        raise ValueError("Unexpected reserved bits")
    return Pid(word & Pid.MAX)


def serialize_pid(pid: Pid) -> bytes:
    """Write a PID with its reserved bits set."""
    return _u16(_PID_RESERVED | pid.value)


# --- descriptors and table entries ---------------------------------------


def parse_descriptor(reader: ReaderLike) -> Descriptor:
    """Read a tag-length-data descriptor."""
    reader = _as_reader(reader)
    tag = reader.get_u8()
    length = reader.get_u8()
    return Descriptor(tag, reader.get_bytes(length))


def serialize_descriptor(descriptor: Descriptor) -> bytes:
    """Write a tag-length-data descriptor."""
    if len(descriptor.data) > 0xFF:
        raise ValueError(f"descriptor data too long: {len(descriptor.data)} bytes")
    return bytes([descriptor.tag, len(descriptor.data)]) + descriptor.data


def _descriptors_bytes(descriptors) -> bytes:
    return b"".join(serialize_descriptor(d) for d in descriptors)


def parse_es_info(reader: ReaderLike) -> EsInfo:
    """Read one elementary stream entry of a PMT."""
    reader = _as_reader(reader)
    stream_type = StreamType.from_u8(reader.get_u8())
    elementary_pid = parse_pid(reader)
    info_len = _check_length_word(reader.get_u16(), "ES info")
    info_reader = reader.take(info_len)
    descriptors = []
    while info_reader.remaining():
        descriptors.append(parse_descriptor(info_reader))
    return EsInfo(stream_type, elementary_pid, descriptors)


def serialize_es_info(info: EsInfo) -> bytes:
    """Write one elementary stream entry of a PMT."""
    descriptors = _descriptors_bytes(info.descriptors)
    if len(descriptors) > _LEN_MASK:
        raise ValueError("ES info length too large")
    return (
        bytes([int(info.stream_type)])
        + serialize_pid(info.elementary_pid)
        + _u16(_LEN_RESERVED | len(descriptors))
        + descriptors
    )


def parse_program_association(reader: ReaderLike) -> ProgramAssociation:
    """Read one entry of a PAT."""
    reader = _as_reader(reader)
    program_num = reader.get_u16()
    return ProgramAssociation(program_num, parse_pid(reader))


def serialize_program_association(association: ProgramAssociation) -> bytes:
    """Write one entry of a PAT."""
    return _u16(association.program_num) + serialize_pid(association.program_map_pid)


# --- PSI tables ----------------------------------------------------------


def parse_psi_table_header(reader: ReaderLike) -> Tuple[PsiTableHeader, int]:
    """Read a table header; return it with the length of the syntax section."""
    reader = _as_reader(reader)
    table_id = reader.get_u8()
    word = reader.get_u16()
    if word & _HEADER_RESERVED != _HEADER_RESERVED:
        raise ValueError("Unexpected reserved bits")
    if word & _LEN_UNUSED:
        raise ValueError("Unexpected section length unused bits")
    header = PsiTableHeader(
        table_id=table_id,
        private_bit=bool(word & 0x4000),
        syntax_section_indicator=bool(word & 0x8000),
    )
    return header, word & _LEN_MASK


def serialize_psi_table_header(header: PsiTableHeader, section_len: int) -> bytes:
    """Write a table header announcing a syntax section of ``section_len`` bytes."""
    if not 0 <= section_len <= MAX_SYNTAX_SECTION_LEN:
        raise ValueError(f"syntax section too long: {section_len} bytes")
    word = (
        (int(section_len != 0) << 15)
        | (int(header.private_bit) << 14)
        | _HEADER_RESERVED
        | section_len
    )
    return bytes([header.table_id]) + _u16(word)


def parse_psi_table_syntax(reader: ReaderLike) -> PsiTableSyntax:
    """Read a syntax section; the table data is everything the reader has left."""
    reader = _as_reader(reader)
    table_id_extension = reader.get_u16()
    flags = reader.get_u8()
    if flags & _SYNTAX_RESERVED != _SYNTAX_RESERVED:
        raise ValueError("Unexpected reserved bits")
    version = VersionNumber((flags & 0b0011_1110) >> 1)
    section_number = reader.get_u8()
    last_section_number = reader.get_u8()
    return PsiTableSyntax(
        table_id_extension=table_id_extension,
        version_number=version,
        current_next_indicator=bool(flags & 1),
        section_number=section_number,
        last_section_number=last_section_number,
        table_data=reader.get_bytes(reader.remaining()),
    )


def serialize_psi_table_syntax(syntax: PsiTableSyntax) -> bytes:
    """Write a syntax section without its CRC32."""
    flags = (
        _SYNTAX_RESERVED
        | (int(syntax.version_number) << 1)
        | int(syntax.current_next_indicator)
    )
    return (
        _u16(syntax.table_id_extension)
        + bytes([flags, syntax.section_number, syntax.last_section_number])
        + bytes(syntax.table_data)
    )


def parse_psi_table(reader: ReaderLike) -> PsiTable:
    """Read a table and check the CRC32 that closes its syntax section."""
    reader = _as_reader(reader)
    header_bytes = reader.get_bytes(3)
    header, section_len = parse_psi_table_header(header_bytes)
    if not header.syntax_section_indicator:
        return PsiTable(header, None)
    if section_len < 4:
        raise ValueError(f"syntax section too short: {section_len} bytes")
    body = reader.get_bytes(section_len - 4)
    computed = crc32(header_bytes + body)
    expected = reader.get_u32()
    if computed != expected:
        raise ValueError(
            f"CRC32 mismatch: computed {computed:#010x}, expected {expected:#010x}"
        )
    return PsiTable(header, parse_psi_table_syntax(body))


def serialize_psi_table(table: PsiTable) -> bytes:
    """Write a table, appending the CRC32 when it has a syntax section."""
    section_len = table.syntax.external_size() if table.syntax is not None else 0
    data = serialize_psi_table_header(table.header, section_len)
    if table.syntax is not None:
        data += serialize_psi_table_syntax(table.syntax)
        data += crc32(data).to_bytes(4, "big")
    return data


def parse_psi(reader: ReaderLike) -> Psi:
    """Read a pointer field and the tables that follow, up to stuffing."""
    reader = _as_reader(reader)
    pointer_field = reader.get_u8()
    if pointer_field != 0:
        raise ValueError(f"unsupported pointer field: {pointer_field}")
    tables = []
    while reader.remaining():
        if tables and reader.peek_u8() == _STUFFING:
            break
        tables.append(parse_psi_table(reader))
    return Psi(tables)


def serialize_psi(psi: Psi) -> bytes:
    """Write a zero pointer field followed by the tables."""
    return b"\x00" + b"".join(serialize_psi_table(t) for t in psi.tables)


def _single_syntax(reader: ReaderLike) -> PsiTableSyntax:
    psi = parse_psi(reader)
    if not psi.tables:
        raise PsiTableCountZeroError()
    syntax = psi.tables[-1].syntax
    if syntax is None:
        raise ValueError("table has no syntax section")
    return syntax


def _wrap_table(table_id: int, extension: int, version: VersionNumber, data: bytes) -> bytes:
    syntax = PsiTableSyntax(
        table_id_extension=extension,
        version_number=version,
        current_next_indicator=True,
        section_number=0,
        last_section_number=0,
        table_data=data,
    )
    header = PsiTableHeader(table_id=table_id, private_bit=False, syntax_section_indicator=True)
    return serialize_psi(Psi([PsiTable(header, syntax)]))


# --- PAT and PMT ---------------------------------------------------------


def parse_pat(reader: ReaderLike) -> Pat:
    """Read a program association table payload."""
    syntax = _single_syntax(reader)
    entries = ByteReader(syntax.table_data)
    table = []
    while entries.remaining():
        table.append(parse_program_association(entries))
    return Pat(
        transport_stream_id=syntax.table_id_extension,
        version_number=syntax.version_number,
        table=table,
    )


def serialize_pat(pat: Pat) -> bytes:
    """Write a program association table payload."""
    data = b"".join(serialize_program_association(pa) for pa in pat.table)
    return _wrap_table(Pat.TABLE_ID, pat.transport_stream_id, pat.version_number, data)


def parse_pmt(reader: ReaderLike) -> Pmt:
    """Read a program map table payload."""
    syntax = _single_syntax(reader)
    data = ByteReader(syntax.table_data)
    pcr_pid = parse_pid(data)
    info_len = _check_length_word(data.get_u16(), "program info")
    info_reader = data.take(info_len)
    program_info = []
    while info_reader.remaining():
        program_info.append(parse_descriptor(info_reader))
    es_info = []
    while data.remaining():
        es_info.append(parse_es_info(data))
    return Pmt(
        program_num=syntax.table_id_extension,
        pcr_pid=None if pcr_pid.value == _NO_PCR_PID else pcr_pid,
        version_number=syntax.version_number,
        program_info=program_info,
        es_info=es_info,
    )


def serialize_pmt(pmt: Pmt) -> bytes:
    """Write a program map table payload."""
    if pmt.pcr_pid is not None:
        if pmt.pcr_pid.value == _NO_PCR_PID:
            raise ValueError("PCR PID 0x1FFF is reserved for 'no PCR'")
        data = serialize_pid(pmt.pcr_pid)
    else:
        data = _u16(0xFFFF)
    program_info = _descriptors_bytes(pmt.program_info)
    if len(program_info) > _LEN_MASK:
        raise ValueError("program info length too large")
    data += _u16(_LEN_RESERVED | len(program_info)) + program_info
    data += b"".join(serialize_es_info(info) for info in pmt.es_info)
    return _wrap_table(Pmt.TABLE_ID, pmt.program_num, pmt.version_number, data)