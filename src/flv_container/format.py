"""Binary layout of FLV files.

The file starts with a fixed preamble written once by the writer and
validated once by the reader:

    Bytes 0-2:   signature        "FLV"
    Byte 3:      version          1
    Byte 4:      flags            0x04 audio, 0x01 video
    Bytes 5-8:   header length    9
    Bytes 9-12:  PreviousTagSize0 0
    Bytes 13-23: script tag header (type 18, 40 byte payload)
    Bytes 24-63: AMF0 "onMetaData" + ECMA array {"duration": <double>}
    Bytes 64-67: script tag trailer (51)

The duration double lives at ``DURATION_OFFSET`` and is patched in place
when a writer is finalised. Every tag that follows is framed as::

    [1B type][3B size][3B timestamp][1B ts-ext][3B stream-id=0]
    [size bytes payload][4B prev-tag-size = size + 11]

All multi-byte fields are big-endian.
"""
from __future__ import annotations

import math
import struct

SIGNATURE = b"FLV"
FLV_VERSION = 1

FLAG_AUDIO = 0x04
FLAG_VIDEO = 0x01

AUDIO_TAG = 8
VIDEO_TAG = 9
SCRIPT_TAG = 18

TAG_HEADER_LEN = 11
PREV_TAG_SIZE_LEN = 4

MAX_DATA_SIZE = (1 << 24) - 1
MAX_TIMESTAMP = (1 << 32) - 1

_FILE_HEADER = struct.Struct(">3sBBI")
_PREV_TAG_SIZE = struct.Struct(">I")
_DURATION = struct.Struct(">d")

_AMF_NUMBER = 0x00
_AMF_STRING = 0x02
_AMF_ECMA_ARRAY = 0x08
_AMF_OBJECT_END = b"\x00\x00\x09"


def _amf_string(value: str) -> bytes:
    raw = value.encode("ascii")
    return struct.pack(">H", len(raw)) + raw


def _metadata_payload(duration: float) -> bytes:
    return b"".join(
        (
            bytes((_AMF_STRING,)),
            _amf_string("onMetaData"),
            struct.pack(">BI", _AMF_ECMA_ARRAY, 1),
            _amf_string("duration"),
            bytes((_AMF_NUMBER,)),
            _DURATION.pack(duration),
            _AMF_OBJECT_END,
        )
    )


def build_header(
    *, has_audio: bool = True, has_video: bool = True, duration: float = 0.0
) -> bytes:
    """Return the fixed preamble written at the start of every file."""

    flags = (FLAG_AUDIO if has_audio else 0) | (FLAG_VIDEO if has_video else 0)
    metadata = _metadata_payload(float(duration))
    return b"".join(
        (
            _FILE_HEADER.pack(SIGNATURE, FLV_VERSION, flags, _FILE_HEADER.size),
            _PREV_TAG_SIZE.pack(0),
            encode_tag_header(SCRIPT_TAG, len(metadata), 0),
            metadata,
            encode_prev_tag_size(len(metadata)),
        )
    )


def has_signature(raw: bytes) -> bool:
    """Return ``True`` when ``raw`` starts with the FLV signature."""

    return bytes(raw[: len(SIGNATURE)]) == SIGNATURE


def encode_duration(duration: float) -> bytes:
    return _DURATION.pack(float(duration))


def read_header_duration(raw_header: bytes) -> float:
    """Extract the duration stored in a preamble produced by :func:`build_header`."""

    if len(raw_header) < DURATION_OFFSET + _DURATION.size:
        raise ValueError("Header too short to contain a duration")
    (duration,) = _DURATION.unpack_from(raw_header, DURATION_OFFSET)
    return duration


def encode_tag_header(tag_type: int, data_size: int, timestamp: int) -> bytes:
    """Pack the 11-byte header that precedes a tag payload.

    The low 24 bits of ``timestamp`` go into the timestamp field and the
    high byte into the extension byte, which is always emitted.
    """

    if not 0 <= tag_type <= 0xFF:
        raise ValueError(f"Tag type must fit in one byte, got {tag_type}")
    if not 0 <= data_size <= MAX_DATA_SIZE:
        raise ValueError(
            f"Tag payload of {data_size} bytes exceeds the {MAX_DATA_SIZE} byte limit"
        )
    if not 0 <= timestamp <= MAX_TIMESTAMP:
        raise ValueError(f"Timestamp must be an unsigned 32-bit value, got {timestamp}")
    return (
        bytes((tag_type,))
        + data_size.to_bytes(3, "big")
        + (timestamp & 0xFFFFFF).to_bytes(3, "big")
        + bytes(((timestamp >> 24) & 0xFF,))
        + b"\x00\x00\x00"
    )


def decode_tag_header(raw: bytes) -> tuple[int, int, int]:
    """Unpack an 11-byte tag header into ``(tag_type, data_size, timestamp)``."""

    if len(raw) != TAG_HEADER_LEN:
        raise ValueError(f"Tag header must be {TAG_HEADER_LEN} bytes, got {len(raw)}")
    tag_type = raw[0]
    data_size = int.from_bytes(raw[1:4], "big")
    timestamp = (raw[7] << 24) | int.from_bytes(raw[4:7], "big")
    return tag_type, data_size, timestamp


def encode_prev_tag_size(data_size: int) -> bytes:
    return _PREV_TAG_SIZE.pack(data_size + TAG_HEADER_LEN)


def decode_prev_tag_size(raw: bytes) -> int:
    (value,) = _PREV_TAG_SIZE.unpack(raw)
    return value


def is_valid_duration(value: float) -> bool:
    return math.isfinite(value) and value >= 0


HEADER_BYTES = build_header()
"""Default preamble: audio and video flags set, zero duration."""

HEADER_LEN = len(HEADER_BYTES)

DURATION_OFFSET = HEADER_LEN - PREV_TAG_SIZE_LEN - len(_AMF_OBJECT_END) - _DURATION.size
"""Absolute offset of the big-endian duration double inside the preamble."""


__all__ = [
    "AUDIO_TAG",
    "DURATION_OFFSET",
    "FLAG_AUDIO",
    "FLAG_VIDEO",
    "FLV_VERSION",
    "HEADER_BYTES",
    "HEADER_LEN",
    "MAX_DATA_SIZE",
    "MAX_TIMESTAMP",
    "PREV_TAG_SIZE_LEN",
    "SCRIPT_TAG",
    "SIGNATURE",
    "TAG_HEADER_LEN",
    "VIDEO_TAG",
    "build_header",
    "decode_prev_tag_size",
    "decode_tag_header",
    "encode_duration",
    "encode_prev_tag_size",
    "encode_tag_header",
    "has_signature",
    "is_valid_duration",
    "read_header_duration",
]
