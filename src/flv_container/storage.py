"""Ownership of the binary handle behind an FLV reader or writer."""
from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO

from .config import DEFAULT_OPTIONS, FlvOptions
from .errors import FlvClosedError, FlvIOError, FlvUnexpectedEOF


logger = logging.getLogger(__name__)


class FlvFile(ABC):
    """Base class holding the open handle, path and options of one file.

    The handle is owned exclusively by this object until :meth:`close`.
    After closing only :attr:`path`, :meth:`file_path`, :meth:`size` and
    :attr:`closed` remain usable.
    """

    def __init__(
        self,
        handle: BinaryIO,
        path: Path | str,
        *,
        options: FlvOptions | None = None,
    ) -> None:
        self._handle: BinaryIO | None = handle
        self._path = Path(path)
        self._options = options or DEFAULT_OPTIONS

    # ------------------------------ properties -----------------------------
    @property
    def path(self) -> Path:
        return self._path

    @property
    def options(self) -> FlvOptions:
        return self._options

    @property
    def closed(self) -> bool:
        return self._handle is None

    def file_path(self) -> str:
        """Return the path the file was created or opened with."""

        return str(self._path)

    @abstractmethod
    def size(self) -> int:  # pragma: no cover - interface only
        raise NotImplementedError

    # ------------------------------ lifecycle ------------------------------
    def close(self) -> None:
        """Release the underlying handle. Calling it again has no effect."""

        handle = self._handle
        if handle is None:
            return
        self._handle = None
        try:
            handle.close()
        except OSError as exc:
            logger.warning("Unable to close FLV file %s: %s", self._path, exc)
            raise FlvIOError(f"Failed to close {self._path}: {exc}") from exc
        logger.debug("Closed FLV file %s", self._path)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<{type(self).__name__} path={str(self._path)!r} {state}>"

    # ----------------------------- implementation --------------------------
    def _require_handle(self) -> BinaryIO:
        handle = self._handle
        if handle is None:
            raise FlvClosedError(f"FLV file {self._path} is closed")
        return handle

    def _write(self, data: bytes) -> None:
        handle = self._require_handle()
        try:
            handle.write(data)
        except OSError as exc:
            raise FlvIOError(f"Failed to write to {self._path}: {exc}") from exc

    def _read_exact(self, count: int, what: str) -> bytes:
        handle = self._require_handle()
        try:
            data = handle.read(count)
        except OSError as exc:
            raise FlvIOError(f"Failed to read {what} from {self._path}: {exc}") from exc
        if len(data) != count:
            raise FlvUnexpectedEOF(
                f"Unexpected end of {self._path} while reading {what}: "
                f"expected {count} bytes, got {len(data)}",
                expected=count,
                received=len(data),
            )
        return data

    def _seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        handle = self._require_handle()
        try:
            return handle.seek(offset, whence)
        except OSError as exc:
            raise FlvIOError(f"Failed to seek in {self._path}: {exc}") from exc

    def _sync(self) -> None:
        """Flush buffered bytes and force them to durable storage."""

        handle = self._require_handle()
        try:
            handle.flush()
            os.fsync(handle.fileno())
        except OSError as exc:
            raise FlvIOError(f"Failed to sync {self._path}: {exc}") from exc


__all__ = ["FlvFile"]
