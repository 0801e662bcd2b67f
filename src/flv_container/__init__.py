"""Reader and writer for the tag-based FLV container format."""

from .config import FlvOptions
from .errors import (
    FlvClosedError,
    FlvError,
    FlvFormatError,
    FlvIOError,
    FlvUnexpectedEOF,
)
from .format import AUDIO_TAG, DURATION_OFFSET, HEADER_LEN, SCRIPT_TAG, VIDEO_TAG
from .reader import FlvReader, TagHeader, open_file
from .version import PACKAGE_VERSION
from .writer import FlvWriter, create_file

__all__ = [
    "AUDIO_TAG",
    "DURATION_OFFSET",
    "FlvClosedError",
    "FlvError",
    "FlvFormatError",
    "FlvIOError",
    "FlvOptions",
    "FlvReader",
    "FlvUnexpectedEOF",
    "FlvWriter",
    "HEADER_LEN",
    "PACKAGE_VERSION",
    "SCRIPT_TAG",
    "TagHeader",
    "VIDEO_TAG",
    "create_file",
    "open_file",
]
