"""MPEG-2 transport stream packet codec, PSI tables and an H.264/H.265 video muxer."""

__version__ = "0.2.2"

__all__ = [
    "crc32",
    "errors",
    "fields",
    "frame",
    "muxer",
    "packet_codec",
    "packets",
    "psi_codec",
    "streams",
    "timestamp",
]