"""Tests for session domain helpers."""

from datetime import UTC, datetime, timedelta

import pytest

from device_link.domain.sessions import (
    SessionRecord,
    elapsed_since,
    format_elapsed,
    format_local_time,
    parse_limit,
    parse_location,
    parse_timestamp,
    session_from_payload,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, 10),
        ("all", None),
        ("5", 5),
        ("5000", 1000),
        (5000, 1000),
        ("0", 10),
        ("-4", 10),
        ("abc", 10),
        ("nan", 10),
        ("2.7", 2),
    ],
)
def test_parse_limit(raw, expected) -> None:  # type: ignore[no-untyped-def]
    assert parse_limit(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ([37.77, -122.42], (37.77, -122.42)),
        ((0, 0), (0.0, 0.0)),
        ([91, 0], None),
        ([0, 181], None),
        ([-90.5, 10], None),
        (["37.7", "-122.4"], None),
        ([37.7], None),
        ({"lat": 1, "lon": 2}, None),
        (None, None),
        ([float("nan"), 0], None),
        ([True, 0], None),
    ],
)
def test_parse_location(raw, expected) -> None:  # type: ignore[no-untyped-def]
    assert parse_location(raw) == expected


def test_out_of_range_location_is_not_coordinates() -> None:
    session = SessionRecord(
        id=1,
        user_id=1,
        patient_id=2,
        location=[91, 0],
        started_at=datetime.now(tz=UTC),
        ended_at=None,
    )

    assert session.coordinates is None
    assert session.to_payload()["location"] is None


def test_elapsed_formatting() -> None:
    started = datetime(2024, 5, 1, 8, 0, 0, tzinfo=UTC)
    now = started + timedelta(hours=1, minutes=2, seconds=3)

    assert format_elapsed(elapsed_since(started, now)) == "01:02:03"
    assert format_elapsed(elapsed_since(now, started)) == "00:00:00"
    assert format_elapsed(timedelta(hours=27)) == "27:00:00"


def test_format_local_time() -> None:
    value = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)

    assert format_local_time(value, "Europe/Berlin") == "2024-05-01 14:00:00 CEST"
    assert format_local_time(None) == "—"


def test_parse_timestamp_treats_naive_as_utc() -> None:
    parsed = parse_timestamp("2024-05-01T12:00:00")

    assert parsed == datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)
    assert parse_timestamp("2024-05-01T12:00:00Z") == parsed
    assert parse_timestamp(None) is None


def test_session_payload_roundtrip_preserves_fields() -> None:
    session = SessionRecord(
        id=4,
        user_id=1,
        patient_id=2,
        location=[1.5, 2.5],
        started_at=datetime(2024, 5, 1, 12, 0, tzinfo=UTC),
        ended_at=None,
        user_name="Ana",
    )

    payload = session.to_payload()

    assert payload["userId"] == 1
    assert payload["endedAt"] is None
    assert payload["startedAt"] == "2024-05-01T12:00:00+00:00"
    assert session_from_payload(payload) == session
