import pytest

from tsmux.errors import (
    Mpeg2TsError,
    PsiTableCountZeroError,
    UnexpectedMarkerBitError,
    UnknownPidError,
    UnsupportedCodecError,
    ValueTooLargeError,
    WrongAudioStreamIdError,
    WrongSyncByteError,
    WrongVideoStreamIdError,
)


def test_audio_stream_id_message_and_attribute():
    err = WrongAudioStreamIdError(5)
    assert str(err) == "Not an audio ID: 5"
    assert err.stream_id == 5


def test_video_stream_id_message_and_attribute():
    err = WrongVideoStreamIdError(17)
    assert str(err) == "Not a video ID: 17"
    assert err.stream_id == 17


def test_value_too_large_message():
    err = ValueTooLargeError(123456)
    assert str(err) == "Value too large: 123456"
    assert err.value == 123456


def test_marker_bit_message():
    err = UnexpectedMarkerBitError(65537)
    assert str(err) == "Marker Bits Check Fail: 65537"
    assert err.bits == 65537


def test_fixed_messages():
    assert str(WrongSyncByteError()) == "Wrong SyncByte"
    assert str(PsiTableCountZeroError()) == "Psi table count is zero"


def test_unknown_pid_message():
    err = UnknownPidError(300)
    assert str(err) == "Unknown PID: 300"
    assert err.pid == 300


def test_unsupported_codec_message():
    err = UnsupportedCodecError("mp4a")
    assert str(err) == "Unsupported Codec mp4a"
    assert err.codec == "mp4a"


@pytest.mark.parametrize(
    "err",
    [
        WrongAudioStreamIdError(1),
        WrongVideoStreamIdError(1),
        ValueTooLargeError(1),
        UnexpectedMarkerBitError(1),
        WrongSyncByteError(),
        UnknownPidError(1),
        PsiTableCountZeroError(),
        UnsupportedCodecError("x"),
    ],
)
def test_all_errors_caught_by_base(err):
    with pytest.raises(Mpeg2TsError) as info:
        raise err
    assert info.value is err