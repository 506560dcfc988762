"""PES stream identifiers and elementary stream types."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True, order=True)
class StreamId:
    """PES stream identifier."""

    value: int

    AUDIO_MIN: ClassVar[int] = 0xC0
    AUDIO_MAX: ClassVar[int] = 0xDF
    VIDEO_MIN: ClassVar[int] = 0xE0
    VIDEO_MAX: ClassVar[int] = 0xEF

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 0xFF:
            raise ValueError(f"stream id out of range: {self.value}")

    def __int__(self) -> int:
        return self.value

    @classmethod
    def new_audio(cls, value: int) -> "StreamId":
        """Make an audio stream id, rejecting values outside the audio range."""
        from .errors import WrongAudioStreamIdError

        if not cls.AUDIO_MIN <= value <= cls.AUDIO_MAX:
            raise WrongAudioStreamIdError(value)
        return cls(value)

    @classmethod
    def new_video(cls, value: int) -> "StreamId":
        """Make a video stream id, rejecting values outside the video range."""
        from .errors import WrongVideoStreamIdError

        if not cls.VIDEO_MIN <= value <= cls.VIDEO_MAX:
            raise WrongVideoStreamIdError(value)
        return cls(value)

    def is_audio(self) -> bool:
        """Whether the id lies in the audio range."""
        return self.AUDIO_MIN <= self.value <= self.AUDIO_MAX

    def is_video(self) -> bool:
        """Whether the id lies in the video range."""
        return self.VIDEO_MIN <= self.value <= self.VIDEO_MAX


class StreamType(enum.IntEnum):
    """Elementary stream type; unlisted byte values become unknown members."""

    MPEG1_VIDEO = 0x01
    MPEG2_VIDEO = 0x02
    MPEG1_AUDIO = 0x03
    MPEG2_HALVED_SAMPLE_RATE_AUDIO = 0x04
    MPEG2_TABLED_DATA = 0x05
    MPEG2_PACKETIZED_DATA = 0x06
    MHEG = 0x07
    DSM_CC = 0x08
    AUXILIARY_DATA_09 = 0x09
    DSM_CC_MULTIPROTOCOL_ENCAPSULATION = 0x0A
    DSM_CC_UN_MESSAGES = 0x0B
    DSM_CC_STREAM_DESCRIPTORS = 0x0C
    DSM_CC_TABLED_DATA = 0x0D
    AUXILIARY_DATA_0E = 0x0E
    ADTS_AAC = 0x0F
    MPEG4_H263_BASED_VIDEO = 0x10
    MPEG4_LOAS_MULTI_FORMAT_FRAMED_AUDIO = 0x11
    MPEG4_FLEX_MUX = 0x12
    MPEG4_FLEX_MUX_IN_TABLE = 0x13
    DSM_CC_SYNCHRONIZED_DOWNLOAD_PROTOCOL = 0x14
    PACKETIZED_METADATA = 0x15
    SECTIONED_METADATA = 0x16
    DSM_CC_DATA_CAROUSEL_METADATA = 0x17
    DSM_CC_OBJECT_CAROUSEL_METADATA = 0x18
    SYNCHRONIZED_DOWNLOAD_PROTOCOL_METADATA = 0x19
    IPMP = 0x1A
    H264 = 0x1B
    H265 = 0x24
    CHINESE_VIDEO_STANDARD = 0x42
    PCM_AUDIO = 0x80
    DOLBY_DIGITAL_UP_TO_SIX_CHANNEL_AUDIO = 0x81
    DTS_6_CHANNEL_AUDIO = 0x82
    DOLBY_TRUE_HD_LOSSLESS_AUDIO = 0x83
    DOLBY_DIGITAL_PLUS_UP_TO_16_CHANNEL_AUDIO = 0x84
    DTS_8_CHANNEL_AUDIO = 0x85
    DTS_8_CHANNEL_LOSSLESS_AUDIO = 0x86
    DOLBY_DIGITAL_PLUS_UP_TO_16_CHANNEL_AUDIO_FOR_ATSC = 0x87
    PRESENTATION_GRAPHIC_STREAM = 0x90
    ATSC_DSM_CC_NETWORK_RESOURCES_TABLE = 0x91
    DIGICIPHER2_TEXT = 0xC0
    DOLBY_DIGITAL_UP_TO_SIX_CHANNEL_AUDIO_WITH_AES128_CBC = 0xC1
    DOLBY_DIGITAL_PLUS_UP_TO_SIX_CHANNEL_AUDIO_WITH_AES128_CBC = 0xC2
    ADTS_AAC_WITH_AES128_CBC = 0xCF
    ULTRA_HD_VIDEO = 0xD1
    H264_WITH_AES128_CBC = 0xDB
    MICROSOFT_WINDOWS_MEDIA_VIDEO_9 = 0xEA

    @classmethod
    def _missing_(cls, value: object) -> "StreamType | None":
        if not isinstance(value, int) or not 0 <= value <= 0xFF:
            return None
        member = int.__new__(cls, value)
        member._name_ = f"UNKNOWN_{value:#04x}"
        member._value_ = value
        return cls._value2member_map_.setdefault(value, member)

    @classmethod
    def from_u8(cls, value: int) -> "StreamType":
        """Return the stream type for a byte value, known or not."""
        return cls(value)

    @property
    def is_known(self) -> bool:
        """Whether this is one of the listed stream types."""
        return self._name_ in type(self).__members__