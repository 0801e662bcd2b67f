"""Configuration options for FLV readers and writers."""
from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Mapping

from .format import MAX_DATA_SIZE


def _coerce_bool(value: object, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"{name} must be a boolean value")


@dataclass(frozen=True, slots=True)
class FlvOptions:
    """Behavioural switches shared by :class:`FlvWriter` and :class:`FlvReader`."""

    has_audio: bool = True
    has_video: bool = True
    verify_trailer: bool = True
    sync_every_tag: bool = False
    max_tag_size: int = MAX_DATA_SIZE

    def __post_init__(self) -> None:
        for name in ("has_audio", "has_video", "verify_trailer", "sync_every_tag"):
            object.__setattr__(self, name, _coerce_bool(getattr(self, name), name))
        if isinstance(self.max_tag_size, bool):
            raise ValueError("max_tag_size must be an integer")
        try:
            limit = int(self.max_tag_size)
        except (TypeError, ValueError) as exc:
            raise ValueError("max_tag_size must be an integer") from exc
        if limit < 0 or limit > MAX_DATA_SIZE:
            raise ValueError(f"max_tag_size must be between 0 and {MAX_DATA_SIZE}")
        object.__setattr__(self, "max_tag_size", limit)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any] | None) -> "FlvOptions":
        if not payload:
            return cls()
        known = {field.name for field in fields(cls)}
        data = {key: value for key, value in payload.items() if key in known}
        return cls(**data)


DEFAULT_OPTIONS = FlvOptions()


__all__ = ["DEFAULT_OPTIONS", "FlvOptions"]
