import pytest

from tsmux.fields import LegalTimeWindow, PiecewiseRate, Pid, RawData
from tsmux.packets import (
    AdaptationExtensionField,
    AdaptationField,
    AdaptationFieldControl,
    Descriptor,
    EsInfo,
    Null,
    Pat,
    Pes,
    PesHeader,
    Pmt,
    ProgramAssociation,
    PsiTableSyntax,
    Section,
    Stuffing,
    TransportScramblingControl,
    TsHeader,
    payload_len,
)
from tsmux.streams import StreamId, StreamType
from tsmux.timestamp import ClockReference, SeamlessSplice, Timestamp


@pytest.mark.parametrize(
    "control, has_field, has_payload",
    [
        (AdaptationFieldControl.PAYLOAD_ONLY, False, True),
        (AdaptationFieldControl.ADAPTATION_FIELD_ONLY, True, False),
        (AdaptationFieldControl.ADAPTATION_FIELD_AND_PAYLOAD, True, True),
        (AdaptationFieldControl.RESERVED, True, True),
    ],
)
def test_adaptation_field_control(control, has_field, has_payload):
    assert control.has_adaptation_field() is has_field
    assert control.has_payload() is has_payload


def test_adaptation_field_control_from_bits():
    assert AdaptationFieldControl(0b11) is AdaptationFieldControl.ADAPTATION_FIELD_AND_PAYLOAD


def test_scrambling_control_known_and_unknown():
    assert TransportScramblingControl(0) is TransportScramblingControl.NOT_SCRAMBLED
    unknown = TransportScramblingControl(1)
    assert int(unknown) == 1
    assert TransportScramblingControl(1) is unknown
    with pytest.raises(ValueError):
        TransportScramblingControl(4)


def test_adaptation_field_size_grows_with_optional_parts():
    base = AdaptationField().external_size()
    with_pcr = AdaptationField(pcr=ClockReference(0)).external_size()
    with_both = AdaptationField(
        pcr=ClockReference(0), opcr=ClockReference(0)
    ).external_size()
    assert with_pcr - base == 6
    assert with_both - with_pcr == 6
    assert AdaptationField(splice_countdown=-1).external_size() - base == 1
    assert AdaptationField(transport_private_data=b"abcd").external_size() - base == 4


def test_adaptation_extension_size():
    empty = AdaptationExtensionField()
    full = AdaptationExtensionField(
        legal_time_window=LegalTimeWindow(True, 5),
        piecewise_rate=PiecewiseRate(7),
        seamless_splice=SeamlessSplice(1, Timestamp(0)),
    )
    assert full.external_size() - empty.external_size() == 2 + 3 + 5
    field_with_ext = AdaptationField(extension=full)
    assert field_with_ext.external_size() == AdaptationField().external_size() + full.external_size()


def test_pes_optional_header_len():
    header = PesHeader(StreamId(0xE0))
    assert header.optional_header_len() == 3
    header.pts = Timestamp(1)
    with_pts = header.optional_header_len()
    header.dts = Timestamp(1)
    assert header.optional_header_len() - with_pts == 5
    header.escr = ClockReference(1)
    assert header.optional_header_len() - with_pts == 5 + 6


def test_psi_table_syntax_size_tracks_data():
    empty = PsiTableSyntax(1)
    filled = PsiTableSyntax(1, table_data=b"\x01\x02\x03")
    assert filled.external_size() - empty.external_size() == 3


def test_payload_len_of_simple_payloads():
    assert payload_len(None) == 0
    assert payload_len(Null()) == 0
    assert payload_len(RawData(b"abcde")) == 5
    assert payload_len(Section(0, RawData(b"xy"))) - payload_len(Section(0)) == 2


def test_payload_len_of_pat_grows_per_entry():
    one = Pat(1, table=[ProgramAssociation(1, Pid(256))])
    two = Pat(1, table=[ProgramAssociation(1, Pid(256)), ProgramAssociation(2, Pid(300))])
    assert payload_len(two) - payload_len(one) == 4


def test_payload_len_of_pmt_counts_descriptors():
    info = EsInfo(StreamType.H264, Pid(257))
    plain = Pmt(1, pcr_pid=Pid(257), es_info=[info])
    described = Pmt(
        1,
        pcr_pid=Pid(257),
        program_info=[Descriptor(5, b"abc")],
        es_info=[EsInfo(StreamType.H264, Pid(257), [Descriptor(9, b"z")])],
    )
    assert payload_len(described) - payload_len(plain) == (2 + 3) + (2 + 1)


def test_payload_len_of_pes_counts_data():
    header = PesHeader(StreamId(0xE0), pts=Timestamp(0))
    empty = payload_len(Pes(header))
    assert payload_len(Pes(header, RawData(bytes(10)))) - empty == 10


def test_payload_len_rejects_other_objects():
    with pytest.raises(TypeError):
        payload_len("not a payload")


def test_stuffing_bytes():
    assert bytes(Stuffing(0xFF, 3)) == b"\xff\xff\xff"
    assert len(Stuffing(0, 7)) == 7


def test_ts_header_counters_are_independent():
    first = TsHeader(Pid(257))
    second = TsHeader(Pid(257))
    first.continuity_counter.increment()
    assert first.continuity_counter.value == 1
    assert second.continuity_counter.value == 0


def test_descriptor_normalises_data():
    assert Descriptor(1, bytearray(b"ab")).data == b"ab"