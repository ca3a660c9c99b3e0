"""Session ledger: open/close transitions and history queries."""

import logging
import math
from dataclasses import dataclass
from typing import Protocol

from device_link.domain.errors import ValidationError
from device_link.domain.sessions import SessionFilter, SessionRecord

logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    """Persistence interface for care-visit sessions."""

    def get_session(self, session_id: int) -> SessionRecord | None:
        """Return a session by id, if present."""

    def get_open_session(self, user_id: int, patient_id: int) -> SessionRecord | None:
        """Return the highest-id open session for the pair, if any."""

    def create_session(
        self, user_id: int, patient_id: int, location: object | None
    ) -> SessionRecord:
        """Insert an open session stamped with the current UTC time."""

    def close_session(self, session_id: int) -> SessionRecord | None:
        """Set ``ended_at`` only if the session is still open.

        Must be a single conditional write. Returns the closed row, or
        ``None`` when the id is unknown or the session was already closed.
        """

    def close_open_sessions(self, user_id: int, patient_id: int) -> list[int]:
        """Close every open session of the pair and return their ids."""

    def list_sessions(self, session_filter: SessionFilter) -> list[SessionRecord]:
        """Return matching sessions ordered by id descending."""


@dataclass
class SessionLedger:
    """Owns session lifecycle and the one-open-session-per-pair rule."""

    repository: SessionRepository
    single_open_session: bool = True

    def get_open_session(
        self, user_id: object, patient_id: object
    ) -> SessionRecord | None:
        """Return the currently open session for a user/patient pair."""
        return self.repository.get_open_session(
            _require_id(user_id, "userId"), _require_id(patient_id, "patientId")
        )

    def start_session(
        self, user_id: object, patient_id: object, location: object | None = None
    ) -> SessionRecord:
        """Open a new session for the pair.

        When ``single_open_session`` is set, any session still open for the
        pair is closed first.
        """
        resolved_user = _require_id(user_id, "userId")
        resolved_patient = _require_id(patient_id, "patientId")
        if self.single_open_session:
            closed = self.repository.close_open_sessions(
                resolved_user, resolved_patient
            )
            if closed:
                logger.info(
                    "Closed stale open sessions %s for user %s patient %s",
                    closed,
                    resolved_user,
                    resolved_patient,
                )
        session = self.repository.create_session(
            resolved_user, resolved_patient, location
        )
        logger.info(
            "Started session %s for user %s patient %s",
            session.id,
            resolved_user,
            resolved_patient,
        )
        return session

    def end_session(self, session_id: object) -> SessionRecord | None:
        """Close a session if it is still open; ``None`` otherwise."""
        resolved_id = _require_id(session_id, "id")
        session = self.repository.close_session(resolved_id)
        if session is None:
            logger.info("Session %s not closed: unknown or already ended", resolved_id)
        else:
            logger.info("Ended session %s", resolved_id)
        return session

    def get_session(self, session_id: object) -> SessionRecord | None:
        """Return a session by id."""
        return self.repository.get_session(_require_id(session_id, "id"))

    def list_sessions(self, session_filter: SessionFilter) -> list[SessionRecord]:
        """Return sessions matching the filter, newest first."""
        return self.repository.list_sessions(session_filter)


def parse_optional_id(raw: object, field_name: str) -> int | None:
    """Parse an optional id filter; blank values mean no filter."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    return _require_id(raw, field_name)


def _require_id(raw: object, field_name: str) -> int:
    """Coerce a finite positive integer id or raise ``ValidationError``."""
    if isinstance(raw, bool) or raw is None:
        raise ValidationError(f"Invalid or missing {field_name}")
    if isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError as exc:
            raise ValidationError(f"Invalid or missing {field_name}") from exc
    elif isinstance(raw, int | float):
        value = float(raw)
    else:
        raise ValidationError(f"Invalid or missing {field_name}")
    if not math.isfinite(value) or value <= 0 or not value.is_integer():
        raise ValidationError(f"Invalid or missing {field_name}")
    return int(value)
