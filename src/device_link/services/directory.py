"""Lookups and plain CRUD over users and patients."""

import secrets
from dataclasses import dataclass
from typing import Protocol

from device_link.domain.errors import NotFoundError, ValidationError
from device_link.domain.models import PatientRecord, UserRecord

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200
MAX_FIELD_LENGTH = 128


class DirectoryRepository(Protocol):
    """Persistence interface for users and patients."""

    def get_user_by_hash(self, user_hash: str) -> UserRecord | None:
        """Return the user with an exact hash match."""

    def get_patient_by_hash(self, patient_hash: str) -> PatientRecord | None:
        """Return the patient with an exact hash match."""

    def get_user(self, user_id: int) -> UserRecord | None:
        """Return a user by id."""

    def list_users(self, limit: int, offset: int) -> list[UserRecord]:
        """Return users ordered by id descending."""

    def list_patients(self, limit: int, offset: int) -> list[PatientRecord]:
        """Return patients ordered by id descending."""

    def create_user(self, name: str | None, user_hash: str | None) -> UserRecord:
        """Insert a user and return it."""

    def create_patient(
        self, name: str | None, patient_hash: str | None
    ) -> PatientRecord:
        """Insert a patient and return it."""

    def update_user(self, user_id: int, fields: dict[str, object]) -> UserRecord | None:
        """Update the given columns; ``None`` when no row matched."""

    def delete_user(self, user_id: int) -> bool:
        """Delete a user; ``False`` when no row matched."""


@dataclass
class DirectoryService:
    """Application service for user and patient records."""

    repository: DirectoryRepository

    def find_user(self, user_hash: str | None) -> UserRecord | None:
        """Look up a user by hash."""
        return self.repository.get_user_by_hash(_require_hash(user_hash))

    def find_patient(self, patient_hash: str | None) -> PatientRecord | None:
        """Look up a patient by hash."""
        return self.repository.get_patient_by_hash(_require_hash(patient_hash))

    def register_user(
        self, name: object = None, user_hash: object = None
    ) -> UserRecord:
        """Create a user, generating a random hash when none is given."""
        resolved_name = _clean_text(name)
        resolved_hash = _clean_text(user_hash) or secrets.token_hex(16)
        return self.repository.create_user(resolved_name, resolved_hash)

    def create_user(self, name: str | None, user_hash: str | None) -> UserRecord:
        return self.repository.create_user(
            _check_length(name, "name"), _check_length(user_hash, "hash")
        )

    def create_patient(
        self, name: str | None, patient_hash: str | None
    ) -> PatientRecord:
        return self.repository.create_patient(
            _check_length(name, "name"), _check_length(patient_hash, "hash")
        )

    def list_users(
        self, limit: object = None, offset: object = None
    ) -> list[UserRecord]:
        return self.repository.list_users(*parse_pagination(limit, offset))

    def list_patients(
        self, limit: object = None, offset: object = None
    ) -> list[PatientRecord]:
        return self.repository.list_patients(*parse_pagination(limit, offset))

    def get_user(self, user_id: object) -> UserRecord:
        """Return a user or raise ``NotFoundError``."""
        user = self.repository.get_user(parse_record_id(user_id))
        if user is None:
            raise NotFoundError("Not found")
        return user

    def update_user(self, user_id: object, changes: dict[str, object]) -> UserRecord:
        """Update the provided ``hash`` and/or ``name``; one is required."""
        resolved_id = parse_record_id(user_id)
        fields = {
            column: _check_length(changes[column], column)
            for column in ("hash", "name")
            if column in changes
        }
        if not fields:
            raise ValidationError("No fields to update")
        user = self.repository.update_user(resolved_id, fields)
        if user is None:
            raise NotFoundError("Not found")
        return user

    def delete_user(self, user_id: object) -> None:
        if not self.repository.delete_user(parse_record_id(user_id)):
            raise NotFoundError("Not found")


def parse_pagination(limit: object, offset: object) -> tuple[int, int]:
    """Clamp ``limit`` to [1, MAX_PAGE_SIZE] and ``offset`` to >= 0."""
    resolved_limit = _to_int(limit, DEFAULT_PAGE_SIZE)
    resolved_offset = _to_int(offset, 0)
    resolved_limit = max(1, min(resolved_limit, MAX_PAGE_SIZE))
    return resolved_limit, max(0, resolved_offset)


def parse_record_id(raw: object) -> int:
    value = _to_int(raw, 0)
    if value <= 0:
        raise ValidationError("Invalid id")
    return value


def _require_hash(value: str | None) -> str:
    if not value:
        raise ValidationError("Missing required query param: hash")
    return value


def _check_length(value: object, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"Validation failed: {field_name} must be a string")
    if len(value) > MAX_FIELD_LENGTH:
        raise ValidationError(f"Validation failed: {field_name} is too long")
    return value


def _clean_text(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _to_int(raw: object, default: int) -> int:
    if raw is None or isinstance(raw, bool):
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        return default
