"""Tests for writer timestamp bookkeeping."""

from __future__ import annotations

import pytest

from flv_container.session import WriteSession


def test_first_timestamp_becomes_baseline() -> None:
    session = WriteSession()

    resolved = session.resolve_timestamp(123_456)

    assert resolved.encoded == 0
    assert session.first_timestamp_set is True
    assert session.first_timestamp == 123_456
    assert session.duration == 0.0


def test_out_of_order_timestamp_is_clamped() -> None:
    session = WriteSession()
    session.resolve_timestamp(1000)
    session.resolve_timestamp(2500)

    resolved = session.resolve_timestamp(2000)

    assert resolved.clamped is True
    assert resolved.effective == 2500
    assert resolved.encoded == 1500
    assert session.last_timestamp == 2500


def test_duration_tracks_largest_encoded_timestamp() -> None:
    session = WriteSession()

    for timestamp in (40, 80, 60, 1040):
        session.resolve_timestamp(timestamp)

    assert session.duration == pytest.approx(1.0)


def test_encoded_timestamps_never_decrease() -> None:
    session = WriteSession()
    encoded = [session.resolve_timestamp(value).encoded for value in (500, 100, 700, 700, 3, 900)]

    assert encoded[0] == 0
    assert all(later >= earlier for earlier, later in zip(encoded, encoded[1:]))
    assert encoded == [0, 0, 200, 200, 200, 400]


@pytest.mark.parametrize("timestamp", [-1, 1 << 32])
def test_rejects_timestamps_outside_u32(timestamp: int) -> None:
    session = WriteSession()

    with pytest.raises(ValueError):
        session.resolve_timestamp(timestamp)

    assert session.first_timestamp_set is False


@pytest.mark.parametrize("timestamp", [1000.0, "1000", None])
def test_rejects_non_integer_timestamps_without_changing_state(timestamp: object) -> None:
    session = WriteSession()

    with pytest.raises(ValueError):
        session.resolve_timestamp(timestamp)  # type: ignore[arg-type]

    assert session.first_timestamp_set is False
    assert session.last_timestamp == 0
    assert session.resolve_timestamp(2000).encoded == 0
