"""Tests for the sequential FLV tag reader."""

from __future__ import annotations

import io
import struct
from pathlib import Path

import pytest

from flv_container import (
    AUDIO_TAG,
    DURATION_OFFSET,
    HEADER_LEN,
    VIDEO_TAG,
    FlvClosedError,
    FlvFormatError,
    FlvIOError,
    FlvOptions,
    FlvUnexpectedEOF,
    TagHeader,
    create_file,
    open_file,
)


class _CountingHandle:
    """Wraps a real handle and records the size of every ``read`` call."""

    def __init__(self, handle) -> None:
        self._handle = handle
        self.reads: list[int] = []

    def read(self, count: int = -1) -> bytes:
        self.reads.append(count)
        return self._handle.read(count)

    def __getattr__(self, name: str):
        return getattr(self._handle, name)


def _write_sample(path: Path, tags: list[tuple[int, bytes, int]]) -> None:
    with create_file(path) as writer:
        for tag_type, payload, timestamp in tags:
            writer.write_tag(payload, tag_type, timestamp)


def test_scenario_with_out_of_order_audio(tmp_path: Path) -> None:
    path = tmp_path / "a.flv"
    video = bytes([0x17, 0x01, 0x00, 0x00, 0x00, 0x65, 0x88, 0x84, 0x00])
    audio = bytes([0xAF, 0x01])

    writer = create_file(path)
    writer.write_video_tag(video, 1000)
    writer.write_audio_tag(audio, 500)
    writer.finalize()
    writer.close()

    with open_file(path) as reader:
        assert reader.duration == 0.0
        first_header, first_payload = reader.read_tag()
        second_header, second_payload = reader.read_tag()
        assert reader.is_finished() is True

    assert first_header == TagHeader(tag_type=VIDEO_TAG, data_size=9, timestamp=0)
    assert first_payload == video
    assert second_header == TagHeader(tag_type=AUDIO_TAG, data_size=2, timestamp=0)
    assert second_payload == audio
    assert first_header.is_video and second_header.is_audio


def test_round_trip_preserves_types_and_payloads(tmp_path: Path) -> None:
    path = tmp_path / "round_trip.flv"
    tags = [
        (VIDEO_TAG, b"\x17\x00\x00\x00\x00\x01\x64\x00\x1f", 5_000),
        (AUDIO_TAG, b"\xaf\x00\x12\x10", 5_000),
        (VIDEO_TAG, bytes(range(256)) * 4, 5_033),
        (AUDIO_TAG, b"", 5_023),
        (18, b"\x02\x00\x04test", 5_100),
    ]
    _write_sample(path, tags)

    with open_file(path) as reader:
        recovered = list(reader.iter_tags())

    assert [(header.tag_type, payload) for header, payload in recovered] == [
        (tag_type, payload) for tag_type, payload, _ in tags
    ]
    assert [header.timestamp for header, _ in recovered] == [0, 0, 33, 33, 100]
    assert [header.data_size for header, _ in recovered] == [len(tag[1]) for tag in tags]


def test_reopened_file_reports_patched_duration(tmp_path: Path) -> None:
    path = tmp_path / "duration.flv"
    _write_sample(path, [(VIDEO_TAG, b"\x00", 100), (VIDEO_TAG, b"\x00", 1_850)])

    with open_file(path) as reader:
        assert reader.duration == 1.75
    assert struct.unpack_from(">d", path.read_bytes(), DURATION_OFFSET) == (1.75,)


def test_is_finished_tracks_position(tmp_path: Path) -> None:
    path = tmp_path / "finish.flv"
    _write_sample(path, [(AUDIO_TAG, b"\x01\x02", 0)])

    reader = open_file(path)
    assert reader.size() == HEADER_LEN + 11 + 2 + 4
    assert reader.is_finished() is False
    reader.read_tag()
    assert reader.is_finished() is True
    reader.close()
    assert reader.is_finished() is True


def test_header_only_file_is_finished_immediately(tmp_path: Path) -> None:
    path = tmp_path / "header_only.flv"
    _write_sample(path, [])

    with open_file(path) as reader:
        assert reader.is_finished() is True
        assert list(reader.iter_tags()) == []


def test_loop_back_replays_from_first_tag(tmp_path: Path) -> None:
    path = tmp_path / "loop.flv"
    _write_sample(path, [(VIDEO_TAG, b"first", 0), (AUDIO_TAG, b"second", 40)])

    with open_file(path) as reader:
        first_pass = list(reader.iter_tags())
        assert reader.tag_count == 2
        reader.loop_back()
        assert reader.tag_count == 0
        assert reader.is_finished() is False
        second_pass = list(reader.iter_tags())

    assert first_pass == second_pass
    assert [payload for _, payload in second_pass] == [b"first", b"second"]


def test_bad_signature_is_rejected(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "not_flv.bin"
    path.write_bytes(b"MP4" + b"\x00" * 100)
    handles: list[_CountingHandle] = []

    def _open(file, mode="r", *args, **kwargs):
        handle = _CountingHandle(io.open(file, mode, *args, **kwargs))
        handles.append(handle)
        return handle

    monkeypatch.setattr("flv_container.reader.open", _open, raising=False)

    with pytest.raises(FlvFormatError):
        open_file(path)

    assert len(handles) == 1
    assert handles[0].reads == [3]
    assert handles[0].closed is True


def test_truncated_header_raises_unexpected_eof(tmp_path: Path) -> None:
    path = tmp_path / "short.flv"
    path.write_bytes(b"FLV\x01\x05")

    with pytest.raises(FlvUnexpectedEOF) as excinfo:
        open_file(path)

    assert excinfo.value.expected == HEADER_LEN - 3
    assert excinfo.value.received == 2


def test_missing_file_raises_io_error(tmp_path: Path) -> None:
    with pytest.raises(FlvIOError):
        open_file(tmp_path / "missing.flv")


@pytest.mark.parametrize("keep", [5, 11, 11 + 3, 11 + 6 + 2])
def test_truncated_tag_raises_unexpected_eof(tmp_path: Path, keep: int) -> None:
    path = tmp_path / "cut.flv"
    _write_sample(path, [(VIDEO_TAG, b"payload", 0)])
    raw = path.read_bytes()
    path.write_bytes(raw[: HEADER_LEN + keep])

    with open_file(path) as reader:
        with pytest.raises(FlvUnexpectedEOF):
            reader.read_tag()


def test_trailer_mismatch_is_detected(tmp_path: Path) -> None:
    path = tmp_path / "trailer.flv"
    _write_sample(path, [(AUDIO_TAG, b"\xaf\x01", 0)])
    raw = bytearray(path.read_bytes())
    raw[-4:] = struct.pack(">I", 99)
    path.write_bytes(bytes(raw))

    with open_file(path) as reader:
        with pytest.raises(FlvFormatError):
            reader.read_tag()

    with open_file(path, FlvOptions(verify_trailer=False)) as reader:
        header, payload = reader.read_tag()
    assert payload == b"\xaf\x01"
    assert header.data_size == 2


def test_tag_larger_than_limit_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "big.flv"
    _write_sample(path, [(VIDEO_TAG, b"x" * 64, 0)])

    with open_file(path, FlvOptions(max_tag_size=32)) as reader:
        with pytest.raises(FlvFormatError):
            reader.read_tag()


def test_extension_byte_round_trips(tmp_path: Path) -> None:
    path = tmp_path / "long.flv"
    _write_sample(path, [(AUDIO_TAG, b"a", 0), (AUDIO_TAG, b"b", 0x7F00_0010)])

    with open_file(path) as reader:
        timestamps = [header.timestamp for header, _ in reader.iter_tags()]

    assert timestamps == [0, 0x7F00_0010]


def test_operations_after_close_raise(tmp_path: Path) -> None:
    path = tmp_path / "closed.flv"
    _write_sample(path, [(VIDEO_TAG, b"\x00", 0)])

    reader = open_file(path)
    size = reader.size()
    reader.close()

    assert reader.closed is True
    assert reader.size() == size
    assert reader.file_path() == str(path)
    with pytest.raises(FlvClosedError):
        reader.read_tag()
    with pytest.raises(FlvClosedError):
        reader.loop_back()
