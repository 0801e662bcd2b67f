"""Sequential FLV tag reader."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator

from .config import DEFAULT_OPTIONS, FlvOptions
from .errors import FlvError, FlvFormatError, FlvIOError
from .format import (
    AUDIO_TAG,
    HEADER_LEN,
    PREV_TAG_SIZE_LEN,
    SCRIPT_TAG,
    SIGNATURE,
    TAG_HEADER_LEN,
    VIDEO_TAG,
    decode_prev_tag_size,
    decode_tag_header,
    has_signature,
    read_header_duration,
)
from .session import ReadSession
from .storage import FlvFile


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TagHeader:
    """Fields decoded from the 11-byte header of one tag."""

    tag_type: int
    data_size: int
    timestamp: int

    @property
    def is_audio(self) -> bool:
        return self.tag_type == AUDIO_TAG

    @property
    def is_video(self) -> bool:
        return self.tag_type == VIDEO_TAG

    @property
    def is_script(self) -> bool:
        return self.tag_type == SCRIPT_TAG


class FlvReader(FlvFile):
    """Reads tags back in file order from an existing FLV file."""

    def __init__(
        self,
        handle: BinaryIO,
        path: Path | str,
        *,
        size: int,
        options: FlvOptions | None = None,
    ) -> None:
        super().__init__(handle, path, options=options)
        self._session = ReadSession(size=size)

    # ------------------------------ properties -----------------------------
    @property
    def session(self) -> ReadSession:
        return self._session

    @property
    def duration(self) -> float:
        """Duration in seconds declared in the file header."""

        return self._session.duration

    @property
    def tag_count(self) -> int:
        return self._session.tag_count

    def size(self) -> int:
        """Return the file length captured when it was opened."""

        return self._session.size

    # ------------------------------ operations -----------------------------
    def read_tag(self) -> tuple[TagHeader, bytes]:
        """Read the next tag and return its header and payload.

        Raises :class:`FlvUnexpectedEOF` when the file ends mid-tag and
        :class:`FlvFormatError` when the trailer does not match the tag size
        and trailer verification is enabled.
        """

        raw_header = self._read_exact(TAG_HEADER_LEN, "tag header")
        tag_type, data_size, timestamp = decode_tag_header(raw_header)
        if data_size > self._options.max_tag_size:
            raise FlvFormatError(
                f"Tag of {data_size} bytes in {self._path} exceeds the "
                f"{self._options.max_tag_size} byte limit"
            )
        payload = self._read_exact(data_size, "tag payload")
        prev_tag_size = decode_prev_tag_size(
            self._read_exact(PREV_TAG_SIZE_LEN, "previous tag size")
        )
        if self._options.verify_trailer and prev_tag_size != data_size + TAG_HEADER_LEN:
            raise FlvFormatError(
                f"Tag trailer in {self._path} declares {prev_tag_size} bytes, "
                f"expected {data_size + TAG_HEADER_LEN}"
            )
        self._session.tag_count += 1
        return TagHeader(tag_type=tag_type, data_size=data_size, timestamp=timestamp), payload

    def is_finished(self) -> bool:
        """Return ``True`` once every byte up to the captured size is consumed.

        A position that cannot be determined also counts as finished.
        """

        try:
            position = self._require_handle().tell()
        except (OSError, ValueError, FlvError):
            return True
        return position >= self._session.size

    def loop_back(self) -> None:
        """Rewind to the first tag so the file can be replayed."""

        self._seek(HEADER_LEN)
        self._session.tag_count = 0

    def iter_tags(self) -> Iterator[tuple[TagHeader, bytes]]:
        """Yield the remaining tags until the end of the file."""

        while not self.is_finished():
            yield self.read_tag()


def open_file(path: Path | str, options: FlvOptions | None = None) -> FlvReader:
    """Open an existing FLV file and validate its preamble.

    Raises :class:`FlvFormatError` when the signature is wrong,
    :class:`FlvUnexpectedEOF` when the preamble is truncated and
    :class:`FlvIOError` when the file cannot be opened or read.
    """

    try:
        handle = open(path, "rb")
    except OSError as exc:
        raise FlvIOError(f"Failed to open {path}: {exc}") from exc
    try:
        size = handle.seek(0, os.SEEK_END)
        handle.seek(0, os.SEEK_SET)
    except OSError as exc:
        handle.close()
        raise FlvIOError(f"Failed to determine the size of {path}: {exc}") from exc

    reader = FlvReader(handle, path, size=size, options=options or DEFAULT_OPTIONS)
    try:
        signature = reader._read_exact(len(SIGNATURE), "file signature")
        if not has_signature(signature):
            raise FlvFormatError(f"{path} is not an FLV file (signature {signature!r})")
        header = signature + reader._read_exact(HEADER_LEN - len(SIGNATURE), "file header")
    except FlvError:
        reader.close()
        raise
    reader.session.duration = read_header_duration(header)
    logger.debug("Opened FLV file %s (%d bytes)", path, size)
    return reader


__all__ = ["FlvReader", "TagHeader", "open_file"]
