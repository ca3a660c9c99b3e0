"""Supabase-backed session repository."""

from dataclasses import dataclass
from datetime import UTC, datetime

from device_link.adapters.store_pool import StorePool
from device_link.domain.errors import TransientIOError
from device_link.domain.sessions import SessionFilter, SessionRecord, parse_timestamp
from device_link.services.sessions import SessionRepository

_COLUMNS = "id, user_id, patient_id, location, started_at, ended_at, created_at"


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for care-visit sessions."""

    pool: StorePool

    def get_session(self, session_id: int) -> SessionRecord | None:
        """Return a session by id, if present."""
        with self.pool.connection() as client:
            response = (
                client.table("sessions")
                .select(_COLUMNS)
                .eq("id", session_id)
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _session_from_row(response.data[0])

    def get_open_session(self, user_id: int, patient_id: int) -> SessionRecord | None:
        """Return the most recent open session for the pair."""
        with self.pool.connection() as client:
            response = (
                client.table("sessions")
                .select(_COLUMNS)
                .eq("user_id", user_id)
                .eq("patient_id", patient_id)
                .is_("ended_at", "null")
                .order("id", desc=True)
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _session_from_row(response.data[0])

    def create_session(
        self, user_id: int, patient_id: int, location: object | None
    ) -> SessionRecord:
        """Insert an open session row and return it."""
        now = datetime.now(tz=UTC).isoformat()
        with self.pool.connection() as client:
            response = (
                client.table("sessions")
                .insert(
                    {
                        "user_id": user_id,
                        "patient_id": patient_id,
                        "location": location,
                        "started_at": now,
                        "created_at": now,
                    }
                )
                .execute()
            )
        if not response.data:
            raise TransientIOError("Insert succeeded but session not found.")
        return _session_from_row(response.data[0])

    def close_session(self, session_id: int) -> SessionRecord | None:
        """Stamp ``ended_at`` with one conditional update."""
        with self.pool.connection() as client:
            response = (
                client.table("sessions")
                .update({"ended_at": datetime.now(tz=UTC).isoformat()})
                .eq("id", session_id)
                .is_("ended_at", "null")
                .execute()
            )
        if not response.data:
            return None
        return _session_from_row(response.data[0])

    def close_open_sessions(self, user_id: int, patient_id: int) -> list[int]:
        """Close all open sessions of the pair in one statement."""
        with self.pool.connection() as client:
            response = (
                client.table("sessions")
                .update({"ended_at": datetime.now(tz=UTC).isoformat()})
                .eq("user_id", user_id)
                .eq("patient_id", patient_id)
                .is_("ended_at", "null")
                .execute()
            )
        return [int(row["id"]) for row in response.data or []]

    def list_sessions(self, session_filter: SessionFilter) -> list[SessionRecord]:
        """Return sessions with joined user and patient names."""
        user_join = "users!inner" if session_filter.user_hash else "users"
        patient_join = "patients!inner" if session_filter.patient_hash else "patients"
        with self.pool.connection() as client:
            query = client.table("sessions").select(
                f"{_COLUMNS}, user:{user_join}(name, hash), "
                f"patient:{patient_join}(name, hash)"
            )
            if session_filter.user_id is not None:
                query = query.eq("user_id", session_filter.user_id)
            if session_filter.patient_id is not None:
                query = query.eq("patient_id", session_filter.patient_id)
            if session_filter.user_hash:
                query = query.eq("user.hash", session_filter.user_hash)
            if session_filter.patient_hash:
                query = query.eq("patient.hash", session_filter.patient_hash)
            query = query.order("id", desc=True)
            if session_filter.limit is not None:
                query = query.limit(session_filter.limit)
            response = query.execute()
        return [_session_from_row(row) for row in response.data or []]


def _session_from_row(row: dict[str, object]) -> SessionRecord:
    user = row.get("user")
    patient = row.get("patient")
    return SessionRecord(
        id=int(row["id"]),
        user_id=_optional_int(row.get("user_id")),
        patient_id=_optional_int(row.get("patient_id")),
        location=row.get("location"),
        started_at=parse_timestamp(row.get("started_at")),
        ended_at=parse_timestamp(row.get("ended_at")),
        created_at=parse_timestamp(row.get("created_at")),
        user_name=user.get("name") if isinstance(user, dict) else None,
        patient_name=patient.get("name") if isinstance(patient, dict) else None,
    )


def _optional_int(value: object) -> int | None:
    return None if value is None else int(value)
