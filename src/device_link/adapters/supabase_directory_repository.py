"""Supabase-backed user and patient repository."""

from dataclasses import dataclass

from device_link.adapters.store_pool import StorePool
from device_link.domain.errors import TransientIOError
from device_link.domain.models import PatientRecord, UserRecord
from device_link.services.directory import DirectoryRepository


@dataclass
class SupabaseDirectoryRepository(DirectoryRepository):
    """Supabase implementation for the ``users`` and ``patients`` tables."""

    pool: StorePool

    def get_user_by_hash(self, user_hash: str) -> UserRecord | None:
        row = self._first("users", "hash", user_hash)
        return _user_from_row(row) if row else None

    def get_patient_by_hash(self, patient_hash: str) -> PatientRecord | None:
        row = self._first("patients", "hash", patient_hash)
        return _patient_from_row(row) if row else None

    def get_user(self, user_id: int) -> UserRecord | None:
        row = self._first("users", "id", user_id)
        return _user_from_row(row) if row else None

    def list_users(self, limit: int, offset: int) -> list[UserRecord]:
        return [_user_from_row(row) for row in self._page("users", limit, offset)]

    def list_patients(self, limit: int, offset: int) -> list[PatientRecord]:
        return [_patient_from_row(row) for row in self._page("patients", limit, offset)]

    def create_user(self, name: str | None, user_hash: str | None) -> UserRecord:
        """Insert a user row and return it."""
        return _user_from_row(self._insert("users", name, user_hash))

    def create_patient(
        self, name: str | None, patient_hash: str | None
    ) -> PatientRecord:
        """Insert a patient row and return it."""
        return _patient_from_row(self._insert("patients", name, patient_hash))

    def update_user(self, user_id: int, fields: dict[str, object]) -> UserRecord | None:
        with self.pool.connection() as client:
            response = client.table("users").update(fields).eq("id", user_id).execute()
        if not response.data:
            return None
        return _user_from_row(response.data[0])

    def delete_user(self, user_id: int) -> bool:
        with self.pool.connection() as client:
            response = client.table("users").delete().eq("id", user_id).execute()
        return bool(response.data)

    def _first(
        self, table: str, column: str, value: object
    ) -> dict[str, object] | None:
        with self.pool.connection() as client:
            response = (
                client.table(table)
                .select("id, name, hash")
                .eq(column, value)
                .limit(1)
                .execute()
            )
        return response.data[0] if response.data else None

    def _page(self, table: str, limit: int, offset: int) -> list[dict[str, object]]:
        with self.pool.connection() as client:
            response = (
                client.table(table)
                .select("id, name, hash")
                .order("id", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
        return response.data or []

    def _insert(
        self, table: str, name: str | None, record_hash: str | None
    ) -> dict[str, object]:
        with self.pool.connection() as client:
            response = (
                client.table(table)
                .insert({"name": name, "hash": record_hash})
                .execute()
            )
        if not response.data:
            raise TransientIOError("Insert succeeded but row not found.")
        return response.data[0]


def _user_from_row(row: dict[str, object]) -> UserRecord:
    return UserRecord(id=int(row["id"]), name=row.get("name"), hash=row.get("hash"))


def _patient_from_row(row: dict[str, object]) -> PatientRecord:
    return PatientRecord(id=int(row["id"]), name=row.get("name"), hash=row.get("hash"))
