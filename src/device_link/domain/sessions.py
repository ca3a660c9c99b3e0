"""Domain models and helpers for care-visit sessions."""

import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

DEFAULT_LIST_LIMIT = 10
MAX_LIST_LIMIT = 1000
ALL_SENTINEL = "all"

Coordinates = tuple[float, float]


@dataclass(frozen=True)
class SessionRecord:
    """Represents a persisted care-visit session.

    ``ended_at`` is ``None`` while the session is open. ``location`` holds the
    raw stored payload; use :func:`parse_location` to read coordinates.
    """

    id: int
    user_id: int | None
    patient_id: int | None
    location: object
    started_at: datetime | None
    ended_at: datetime | None
    created_at: datetime | None = None
    user_name: str | None = None
    patient_name: str | None = None

    @property
    def is_open(self) -> bool:
        return self.ended_at is None

    @property
    def coordinates(self) -> Coordinates | None:
        return parse_location(self.location)

    def to_payload(self) -> dict[str, object]:
        """Serialize to the camelCase wire shape.

        Stored locations outside the valid coordinate ranges are emitted as
        ``None``.
        """
        coordinates = self.coordinates
        return {
            "id": self.id,
            "userId": self.user_id,
            "patientId": self.patient_id,
            "location": list(coordinates) if coordinates else None,
            "startedAt": _isoformat(self.started_at),
            "endedAt": _isoformat(self.ended_at),
            "createdAt": _isoformat(self.created_at),
            "userName": self.user_name,
            "patientName": self.patient_name,
        }


@dataclass(frozen=True)
class SessionFilter:
    """Conjunctive, optional filters for listing sessions.

    ``limit`` of ``None`` means no row cap.
    """

    user_id: int | None = None
    patient_id: int | None = None
    user_hash: str | None = None
    patient_hash: str | None = None
    limit: int | None = DEFAULT_LIST_LIMIT


def parse_limit(raw: object) -> int | None:
    """Parse a list limit: ``"all"`` -> no cap, junk -> default, else clamp."""
    if raw is None:
        return DEFAULT_LIST_LIMIT
    if isinstance(raw, str):
        cleaned = raw.strip()
        if cleaned == ALL_SENTINEL:
            return None
        try:
            value = float(cleaned)
        except ValueError:
            return DEFAULT_LIST_LIMIT
    elif isinstance(raw, int | float) and not isinstance(raw, bool):
        value = float(raw)
    else:
        return DEFAULT_LIST_LIMIT
    if not math.isfinite(value) or value <= 0:
        return DEFAULT_LIST_LIMIT
    return max(1, min(int(value), MAX_LIST_LIMIT))


def parse_location(raw: object) -> Coordinates | None:
    """Return ``(latitude, longitude)`` if ``raw`` is a valid pair, else ``None``."""
    if not isinstance(raw, list | tuple) or len(raw) != 2:  # noqa: PLR2004
        return None
    lat, lon = raw
    for value in (lat, lon):
        if isinstance(value, bool) or not isinstance(value, int | float):
            return None
        if not math.isfinite(value):
            return None
    if not -90 <= lat <= 90 or not -180 <= lon <= 180:  # noqa: PLR2004
        return None
    return float(lat), float(lon)


def elapsed_since(started_at: datetime, now: datetime | None = None) -> timedelta:
    """Return time elapsed since ``started_at``, never negative."""
    current = now or datetime.now(tz=UTC)
    delta = current - _as_utc(started_at)
    return max(delta, timedelta(0))


def format_elapsed(delta: timedelta) -> str:
    """Format a duration as ``HH:MM:SS``."""
    total = int(delta.total_seconds())
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_local_time(value: datetime | None, timezone: str | None = None) -> str:
    """Render a UTC timestamp in the given (or system) timezone."""
    if value is None:
        return "—"
    zone = ZoneInfo(timezone) if timezone else None
    localized = _as_utc(value).astimezone(zone)
    return localized.strftime("%Y-%m-%d %H:%M:%S %Z")


def parse_timestamp(raw: object) -> datetime | None:
    """Parse an ISO-8601 timestamp, treating naive values as UTC."""
    if isinstance(raw, datetime):
        return _as_utc(raw)
    if not isinstance(raw, str) or not raw:
        return None
    return _as_utc(datetime.fromisoformat(raw))


def session_from_payload(payload: dict[str, object] | None) -> SessionRecord | None:
    """Build a session from a camelCase API payload."""
    if not payload:
        return None
    return SessionRecord(
        id=int(payload["id"]),
        user_id=_optional_int(payload.get("userId")),
        patient_id=_optional_int(payload.get("patientId")),
        location=payload.get("location"),
        started_at=parse_timestamp(payload.get("startedAt")),
        ended_at=parse_timestamp(payload.get("endedAt")),
        created_at=parse_timestamp(payload.get("createdAt")),
        user_name=payload.get("userName"),
        patient_name=payload.get("patientName"),
    )


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _isoformat(value: datetime | None) -> str | None:
    return _as_utc(value).isoformat() if value else None


def _optional_int(value: object) -> int | None:
    return None if value is None else int(value)
