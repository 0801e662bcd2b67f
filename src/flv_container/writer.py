"""Append-only FLV writer with timestamp and duration bookkeeping."""
from __future__ import annotations

import logging
import operator
import os
from pathlib import Path
from typing import BinaryIO

from .config import DEFAULT_OPTIONS, FlvOptions
from .errors import FlvIOError
from .format import (
    AUDIO_TAG,
    DURATION_OFFSET,
    PREV_TAG_SIZE_LEN,
    SCRIPT_TAG,
    TAG_HEADER_LEN,
    VIDEO_TAG,
    build_header,
    encode_duration,
    encode_prev_tag_size,
    encode_tag_header,
    is_valid_duration,
)
from .session import WriteSession
from .storage import FlvFile


logger = logging.getLogger(__name__)


class FlvWriter(FlvFile):
    """Writes framed tags to a freshly created FLV file.

    Timestamps passed to :meth:`write_tag` are clamped so they never go
    backwards and are rebased so the first tag is encoded at zero. The
    on-disk timestamp can therefore differ from the value supplied.
    """

    def __init__(
        self,
        handle: BinaryIO,
        path: Path | str,
        *,
        options: FlvOptions | None = None,
        header_size: int = 0,
    ) -> None:
        super().__init__(handle, path, options=options)
        self._session = WriteSession(bytes_written=header_size)

    # ------------------------------ properties -----------------------------
    @property
    def session(self) -> WriteSession:
        return self._session

    @property
    def duration(self) -> float:
        """Duration in seconds that the next :meth:`finalize` will persist."""

        return self._session.duration

    @property
    def last_timestamp(self) -> int:
        return self._session.last_timestamp

    @property
    def tag_count(self) -> int:
        return self._session.tag_count

    def size(self) -> int:
        """Return the number of bytes written so far, header included."""

        return self._session.bytes_written

    # ------------------------------ operations -----------------------------
    def write_audio_tag(self, data: bytes, timestamp: int) -> None:
        self.write_tag(data, AUDIO_TAG, timestamp)

    def write_video_tag(self, data: bytes, timestamp: int) -> None:
        self.write_tag(data, VIDEO_TAG, timestamp)

    def write_script_tag(self, data: bytes, timestamp: int) -> None:
        self.write_tag(data, SCRIPT_TAG, timestamp)

    def write_tag(self, data: bytes, tag_type: int, timestamp: int) -> None:
        """Append one tag carrying ``data``.

        A failed write leaves whatever bytes reached the file in place; the
        file must be repaired or truncated before appending again.
        """

        self._require_handle()
        payload = memoryview(data)
        data_size = payload.nbytes
        limit = self._options.max_tag_size
        if data_size > limit:
            raise ValueError(f"Tag payload of {data_size} bytes exceeds the {limit} byte limit")
        try:
            tag_type = operator.index(tag_type)
        except TypeError as exc:
            raise ValueError(f"Tag type must be an integer, got {tag_type!r}") from exc
        if not 0 <= tag_type <= 0xFF:
            raise ValueError(f"Tag type must fit in one byte, got {tag_type}")

        resolved = self._session.resolve_timestamp(timestamp)
        if resolved.clamped:
            logger.debug(
                "Clamped timestamp %d to %d in %s",
                resolved.requested,
                resolved.effective,
                self._path,
            )

        self._write(encode_tag_header(tag_type, data_size, resolved.encoded))
        self._write(payload)
        self._write(encode_prev_tag_size(data_size))
        self._session.tag_count += 1
        self._session.bytes_written += TAG_HEADER_LEN + data_size + PREV_TAG_SIZE_LEN

        if self._options.sync_every_tag:
            self._sync()

    def set_duration(self, duration: float) -> None:
        """Override the tracked duration persisted by :meth:`finalize`."""

        try:
            value = float(duration)
        except (TypeError, ValueError) as exc:
            raise ValueError("Duration must be numeric") from exc
        if not is_valid_duration(value):
            raise ValueError("Duration must be a finite, non-negative number of seconds")
        self._session.duration = value

    def finalize(self) -> None:
        """Patch the duration into the header and flush to durable storage.

        Safe to call any number of times; writes continue to append
        afterwards.
        """

        self._seek(DURATION_OFFSET)
        self._write(encode_duration(self._session.duration))
        self._seek(0, os.SEEK_END)
        self._sync()
        logger.debug(
            "Finalised %s with duration %.3fs after %d tags",
            self._path,
            self._session.duration,
            self._session.tag_count,
        )

    sync = finalize

    def close(self, *, finalize: bool = True) -> None:
        """Finalise (unless ``finalize`` is false) and release the file."""

        if self.closed:
            return
        try:
            if finalize:
                self.finalize()
        finally:
            super().close()

    def __exit__(self, exc_type, exc, tb) -> None:
        # Leave the header untouched when the block failed mid-write.
        self.close(finalize=exc_type is None)


def create_file(path: Path | str, options: FlvOptions | None = None) -> FlvWriter:
    """Create (or truncate) ``path`` and write the FLV preamble.

    Raises :class:`FlvIOError` when the file cannot be created or the
    preamble cannot be written and flushed.
    """

    options = options or DEFAULT_OPTIONS
    header = build_header(has_audio=options.has_audio, has_video=options.has_video)
    try:
        handle = open(path, "wb")
    except OSError as exc:
        raise FlvIOError(f"Failed to create {path}: {exc}") from exc
    writer = FlvWriter(handle, path, options=options, header_size=len(header))
    try:
        writer._write(header)
        writer._sync()
    except FlvIOError:
        writer.close(finalize=False)
        raise
    logger.debug("Created FLV file %s", path)
    return writer


__all__ = ["FlvWriter", "create_file"]
