"""Domain models for users and patients."""

from dataclasses import dataclass


@dataclass(frozen=True)
class UserRecord:
    """Represents a care agent stored in the database."""

    id: int
    name: str | None
    hash: str | None

    def to_payload(self) -> dict[str, object]:
        return {"id": self.id, "name": self.name, "hash": self.hash}


@dataclass(frozen=True)
class PatientRecord:
    """Represents a patient linked to a device by hash."""

    id: int
    name: str | None
    hash: str | None

    def to_payload(self) -> dict[str, object]:
        return {"id": self.id, "name": self.name, "hash": self.hash}


def user_from_payload(payload: dict[str, object] | None) -> UserRecord | None:
    """Build a user from an API payload."""
    if not payload:
        return None
    return UserRecord(
        id=int(payload["id"]),
        name=payload.get("name"),
        hash=payload.get("hash"),
    )


def patient_from_payload(payload: dict[str, object] | None) -> PatientRecord | None:
    """Build a patient from an API payload."""
    if not payload:
        return None
    return PatientRecord(
        id=int(payload["id"]),
        name=payload.get("name"),
        hash=payload.get("hash"),
    )
