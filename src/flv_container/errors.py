"""Exceptions raised by FLV readers and writers."""

from __future__ import annotations


class FlvError(RuntimeError):
    """Base exception raised for FLV container failures."""


class FlvIOError(FlvError):
    """Raised when the underlying storage fails to open, read, write, seek or flush."""


class FlvUnexpectedEOF(FlvIOError):
    """Raised when the stream ends in the middle of a header or tag."""

    def __init__(self, message: str, *, expected: int, received: int) -> None:
        super().__init__(message)
        self.expected = expected
        self.received = received


class FlvFormatError(FlvError):
    """Raised when the file does not follow the FLV layout."""


class FlvClosedError(FlvError):
    """Raised when an operation is attempted on a closed file."""


__all__ = [
    "FlvClosedError",
    "FlvError",
    "FlvFormatError",
    "FlvIOError",
    "FlvUnexpectedEOF",
]
