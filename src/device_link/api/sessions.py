"""Session endpoints backed by the session ledger."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Query, Request

from device_link.api.models import StartSessionRequest
from device_link.domain.errors import NotFoundError, ValidationError
from device_link.domain.sessions import SessionFilter, parse_limit
from device_link.services.sessions import parse_optional_id

if TYPE_CHECKING:
    from device_link.containers import AppContainer

router = APIRouter(tags=["sessions"])


@router.get("/session")
def get_open_session(
    request: Request,
    user_id: str | None = Query(default=None, alias="userId"),
    patient_id: str | None = Query(default=None, alias="patientId"),
) -> dict[str, object]:
    """Return the open session for a user/patient pair."""
    if not user_id or not patient_id:
        raise ValidationError("Missing userId or patientId")
    container: AppContainer = request.app.state.container
    session = container.session_ledger.get_open_session(user_id, patient_id)
    return {"ok": True, "session": session.to_payload() if session else None}


@router.post("/session")
def start_session(
    request: Request, body: StartSessionRequest | None = None
) -> dict[str, object]:
    """Start a session for a user/patient pair."""
    payload = body or StartSessionRequest()
    container: AppContainer = request.app.state.container
    session = container.session_ledger.start_session(
        payload.user_id, payload.patient_id, payload.location
    )
    return {"ok": True, "session": session.to_payload()}


@router.put("/session")
def end_session(
    request: Request, session_id: str | None = Query(default=None, alias="id")
) -> dict[str, object]:
    """End a session by id; already-closed sessions are returned unchanged."""
    try:
        resolved_id = parse_optional_id(session_id, "id")
    except ValidationError:
        resolved_id = None
    if resolved_id is None:
        raise ValidationError("Missing or invalid id")
    container: AppContainer = request.app.state.container
    ledger = container.session_ledger
    session = ledger.end_session(resolved_id)
    if session is None:
        session = ledger.get_session(resolved_id)
        if session is None:
            raise NotFoundError("Session not found")
    return {"ok": True, "session": session.to_payload()}


@router.get("/sessions")
def list_sessions(  # noqa: PLR0913
    request: Request,
    user_id: str | None = Query(default=None, alias="userId"),
    patient_id: str | None = Query(default=None, alias="patientId"),
    user_hash: str | None = Query(default=None, alias="userHash"),
    patient_hash: str | None = Query(default=None, alias="patientHash"),
    limit: str | None = None,
) -> dict[str, object]:
    """List sessions, newest first; ``limit=all`` removes the row cap."""
    container: AppContainer = request.app.state.container
    session_filter = SessionFilter(
        user_id=parse_optional_id(user_id, "userId"),
        patient_id=parse_optional_id(patient_id, "patientId"),
        user_hash=user_hash or None,
        patient_hash=patient_hash or None,
        limit=parse_limit(limit),
    )
    sessions = container.session_ledger.list_sessions(session_filter)
    return {"ok": True, "sessions": [session.to_payload() for session in sessions]}
