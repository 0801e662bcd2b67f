"""Per-file bookkeeping for FLV writers and readers."""
from __future__ import annotations

import operator
from dataclasses import dataclass

from .format import MAX_TIMESTAMP


@dataclass(frozen=True, slots=True)
class ResolvedTimestamp:
    """Timestamp chosen for one tag after clamping and baseline removal."""

    requested: int
    effective: int
    encoded: int

    @property
    def clamped(self) -> bool:
        return self.effective != self.requested


@dataclass(slots=True)
class WriteSession:
    """Timestamp and duration state carried across ``write_tag`` calls."""

    first_timestamp_set: bool = False
    first_timestamp: int = 0
    last_timestamp: int = 0
    duration: float = 0.0
    tag_count: int = 0
    bytes_written: int = 0

    def resolve_timestamp(self, timestamp: int) -> ResolvedTimestamp:
        """Advance the session with ``timestamp`` and return the value to encode.

        Timestamps never regress: a value below the last one seen is clamped
        up to it. The first effective timestamp becomes the baseline, so the
        encoded stream always starts at zero. The running duration follows
        the largest encoded timestamp.
        """

        try:
            timestamp = operator.index(timestamp)
        except TypeError as exc:
            raise ValueError(f"Timestamp must be an integer, got {timestamp!r}") from exc
        if timestamp < 0 or timestamp > MAX_TIMESTAMP:
            raise ValueError(f"Timestamp must be an unsigned 32-bit value, got {timestamp}")
        effective = timestamp
        if effective < self.last_timestamp:
            effective = self.last_timestamp
        else:
            self.last_timestamp = effective
        if not self.first_timestamp_set:
            self.first_timestamp_set = True
            self.first_timestamp = effective
        encoded = effective - self.first_timestamp
        seconds = encoded / 1000.0
        if seconds > self.duration:
            self.duration = seconds
        return ResolvedTimestamp(requested=timestamp, effective=effective, encoded=encoded)


@dataclass(slots=True)
class ReadSession:
    size: int
    duration: float = 0.0
    tag_count: int = 0


__all__ = ["ReadSession", "ResolvedTimestamp", "WriteSession"]
