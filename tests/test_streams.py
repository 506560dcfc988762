import pytest

from tsmux.errors import WrongAudioStreamIdError, WrongVideoStreamIdError
from tsmux.streams import StreamId, StreamType


def test_codec_stream_types():
    assert StreamType.from_u8(0x1B) is StreamType.H264
    assert StreamType.from_u8(0x24) is StreamType.H265


@pytest.mark.parametrize("member", list(StreamType))
def test_known_members_round_trip(member):
    assert StreamType.from_u8(int(member)) is member
    assert member.is_known


def test_unknown_value_is_preserved():
    unknown = StreamType.from_u8(0x55)
    assert int(unknown) == 0x55
    assert not unknown.is_known
    assert unknown not in list(StreamType)
    assert StreamType.from_u8(0x55) is unknown


@pytest.mark.parametrize("value", [-1, 0x100])
def test_stream_type_rejects_non_byte(value):
    with pytest.raises(ValueError):
        StreamType.from_u8(value)


def test_new_audio_range():
    assert StreamId.new_audio(StreamId.AUDIO_MIN).is_audio()
    assert StreamId.new_audio(StreamId.AUDIO_MAX).value == StreamId.AUDIO_MAX
    with pytest.raises(WrongAudioStreamIdError) as info:
        StreamId.new_audio(StreamId.VIDEO_MIN)
    assert info.value.stream_id == StreamId.VIDEO_MIN


def test_new_video_range():
    assert StreamId.new_video(StreamId.VIDEO_MIN).is_video()
    assert StreamId.new_video(StreamId.VIDEO_MAX).value == StreamId.VIDEO_MAX
    with pytest.raises(WrongVideoStreamIdError):
        StreamId.new_video(StreamId.AUDIO_MAX)
    with pytest.raises(WrongVideoStreamIdError):
        StreamId.new_video(StreamId.VIDEO_MAX + 1)


@pytest.mark.parametrize("value", range(0, 0x100, 7))
def test_audio_and_video_exclusive(value):
    sid = StreamId(value)
    assert not (sid.is_audio() and sid.is_video())
    assert sid.is_audio() == (StreamId.AUDIO_MIN <= value <= StreamId.AUDIO_MAX)


def test_stream_id_boundaries():
    assert not StreamId(StreamId.AUDIO_MIN - 1).is_audio()
    assert not StreamId(StreamId.VIDEO_MAX + 1).is_video()
    with pytest.raises(ValueError):
        StreamId(0x100)