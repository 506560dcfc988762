# tsmux

This package reads and writes MPEG-2 transport stream packets (ISO/IEC 13818-1).
It also has a small muxer that wraps encoded H.264 or H.265 video frames into
188-byte TS packets.

It needs nothing beyond the standard library. Python 3.10 or newer is required.

```
pip install .
```

## Muxing video frames

`tsmux.muxer.Mpeg2TsMuxer` turns encoded video frames into transport stream bytes.

The first frame also produces two packets:

- A PAT that announces program 1, whose PMT is on PID 256.
- A PMT that declares a single video stream on PID 257. The stream type is H.264 for `Fourcc.VIDEO_AVC` and H.265 for `Fourcc.VIDEO_HEVC`.

Each frame then becomes one PES packet with stream id `0xE0` and a PTS. The PES packet is laid out like this:

- The first TS packet carries up to 150 bytes of frame data.
- The rest of the data follows in packets of up to 184 bytes.
- Each packet is padded to 188 bytes with adaptation-field stuffing.
- The continuity counter of the video PID runs across frames.
- Keyframes carry an adaptation field with the random access flag set and a PCR.

```python
from tsmux.frame import Fourcc, Mpeg2TsFrame, Mpeg2TsSource
from tsmux.muxer import Mpeg2TsMuxer, Mpeg2TsMuxerConfig

source = Mpeg2TsSource(codec=Fourcc.VIDEO_AVC, params=[sps, pps])
frames = [
    Mpeg2TsFrame(pts=0, dts=0, keyframe=True, payload=idr_nal, source=source),
    Mpeg2TsFrame(pts=40_000, dts=40_000, keyframe=False, payload=p_nal, source=source),
]

muxer = Mpeg2TsMuxer(Mpeg2TsMuxerConfig(send_params_on_each_keyframe=True))
with open("out.ts", "wb") as out:
    for chunk in muxer.handle(frames):
        out.write(chunk)
```

### Frames and timestamps

- `handle` takes any iterable of frames and yields the bytes of each frame in turn.
- `push_frame` muxes a single frame and returns its bytes.
- Frame `pts` values are in microseconds. They are converted to 90 kHz ticks.

### Parameter sets and start codes

`Mpeg2TsFrame` always reports the `ANNEXB` flag. Because of that, its parameter sets and payload are written as given. They must already start with Annex B start codes.

The muxer accepts any object with the members it uses: `pts`, `codec()`, `is_keyframe()`, `has_params()`, `params()`, `chunks()` and `has_flag()`. For such a frame without `ANNEXB`, a `00 00 01` start code is put in front of each parameter set and chunk.

Which frames carry parameter sets depends on `Mpeg2TsMuxerConfig.send_params_on_each_keyframe`:

- When it is true (the default), parameter sets go in front of every keyframe.
- Otherwise they go in front of every frame that has any.

`send_aud` is accepted but has no effect.

### Errors while muxing

A codec other than AVC or HEVC raises `tsmux.errors.UnsupportedCodecError`.

## Reading and writing packets

`tsmux.packet_codec.TsCodec` parses 188-byte packets. It learns PMT PIDs from PAT payloads and PES PIDs from PMT payloads, so it can recognise them as they appear. A packet on a PID it has not learned raises `UnknownPidError`.

```python
from tsmux.packet_codec import TsCodec

codec = TsCodec()
for packet in codec.iter_packets(data):
    print(packet.header.pid, packet.payload)
```

`TsCodec.serialize` writes a `tsmux.packets.TsPacket` back to 188 bytes. It sets the adaptation field control and the payload unit start indicator itself.

The data model lives in `tsmux.packets` (`TsHeader`, `AdaptationField`, `Pat`, `Pmt`, `Pes`, `PesHeader`, …). Bounded values live in:

- `tsmux.fields`: `Pid`, `ContinuityCounter`, `VersionNumber`, `RawData`, …
- `tsmux.streams`: `StreamId`, `StreamType`.
- `tsmux.timestamp`: `Timestamp`, `ClockReference`, `SeamlessSplice`.

Lower-level parse and serialize functions are grouped by module:

- `tsmux.psi_codec` covers PSI tables: `parse_pat`, `serialize_pat`, `parse_pmt`, `serialize_pmt`, and others.
- `tsmux.packet_codec` covers packet headers, adaptation fields, PTS/PCR/ESCR values and PES headers.

Each parse function takes bytes or a `tsmux.fields.ByteReader`. `tsmux.crc32` provides the CRC-32/MPEG-2 checksum used by PSI tables: `crc32(data)` and the incremental `Crc32`.

## Errors

Errors specific to the format derive from `tsmux.errors.Mpeg2TsError`:

- `WrongSyncByteError`
- `UnknownPidError`
- `ValueTooLargeError`
- `UnexpectedMarkerBitError`
- `PsiTableCountZeroError`
- `UnsupportedCodecError`
- `WrongAudioStreamIdError`
- `WrongVideoStreamIdError`

Other problems raise standard exceptions instead:

- Out-of-range field values, bad reserved bits and CRC mismatches raise `ValueError`.
- Reading past the end of the data raises `EOFError`.

## What it does not do

- There is no demuxer that reassembles parsed packets into frames.
- There is no audio stream support in the muxer.
- There is no command-line tool.
- Section payloads can be written but are not recognised when parsing.