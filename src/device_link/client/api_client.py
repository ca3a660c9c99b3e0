"""HTTPX client for the device link API."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from device_link.domain.models import (
    PatientRecord,
    UserRecord,
    patient_from_payload,
    user_from_payload,
)
from device_link.domain.sessions import (
    ALL_SENTINEL,
    Coordinates,
    SessionRecord,
    session_from_payload,
)


class HttpError(Exception):
    """Raised for non-2xx responses; ``message`` comes from the body's ``error``."""

    def __init__(
        self, message: str, status: int, details: object | None = None
    ) -> None:
        super().__init__(message)
        self.status = status
        self.details = details


class DeviceLinkApi(Protocol):
    """Interface for the server operations used during bootstrap."""

    async def register(self, agent_id: str | None, device_id: str) -> dict[str, object]:
        """Register the device and return the server's echo."""

    async def find_patient(self, patient_hash: str) -> PatientRecord | None:
        """Look up the patient linked to a device hash."""

    async def find_user(self, user_hash: str) -> UserRecord | None:
        """Look up the user for an agent hash."""

    async def get_open_session(
        self, user_id: int, patient_id: int
    ) -> SessionRecord | None:
        """Return the open session for a pair."""

    async def start_session(
        self, user_id: int, patient_id: int, location: Coordinates | None
    ) -> SessionRecord:
        """Start a session."""

    async def end_session(self, session_id: int) -> SessionRecord | None:
        """End a session."""

    async def list_sessions(
        self,
        user_id: int | None = None,
        patient_id: int | None = None,
        limit: int | str | None = ALL_SENTINEL,
    ) -> list[SessionRecord]:
        """List sessions, newest first."""


@dataclass
class HttpxDeviceLinkApi(DeviceLinkApi):
    """HTTPX-backed API client; its cookie jar holds the device cookie."""

    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str) -> "HttpxDeviceLinkApi":
        """Create a client with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient(base_url=base_url, timeout=15))

    @property
    def cookies(self) -> httpx.Cookies:
        return self.http_client.cookies

    async def register(self, agent_id: str | None, device_id: str) -> dict[str, object]:
        """Register the device."""
        response = await self.http_client.post(
            "/register", json={"agentId": agent_id, "deviceId": device_id}
        )
        return _json_or_raise(response)

    async def find_patient(self, patient_hash: str) -> PatientRecord | None:
        response = await self.http_client.get("/patient", params={"hash": patient_hash})
        return patient_from_payload(_json_or_raise(response).get("patient"))

    async def find_user(self, user_hash: str) -> UserRecord | None:
        response = await self.http_client.get("/user", params={"hash": user_hash})
        return user_from_payload(_json_or_raise(response).get("user"))

    async def get_open_session(
        self, user_id: int, patient_id: int
    ) -> SessionRecord | None:
        response = await self.http_client.get(
            "/session", params={"userId": user_id, "patientId": patient_id}
        )
        return session_from_payload(_json_or_raise(response).get("session"))

    async def start_session(
        self, user_id: int, patient_id: int, location: Coordinates | None
    ) -> SessionRecord:
        body: dict[str, object] = {"userId": user_id, "patientId": patient_id}
        if location is not None:
            body["location"] = list(location)
        response = await self.http_client.post("/session", json=body)
        session = session_from_payload(_json_or_raise(response).get("session"))
        if session is None:
            raise HttpError("start failed", response.status_code)
        return session

    async def end_session(self, session_id: int) -> SessionRecord | None:
        response = await self.http_client.put("/session", params={"id": session_id})
        return session_from_payload(_json_or_raise(response).get("session"))

    async def list_sessions(
        self,
        user_id: int | None = None,
        patient_id: int | None = None,
        limit: int | str | None = ALL_SENTINEL,
    ) -> list[SessionRecord]:
        """List sessions, optionally filtered."""
        params: dict[str, object] = {}
        if user_id is not None:
            params["userId"] = user_id
        if patient_id is not None:
            params["patientId"] = patient_id
        if limit is not None:
            params["limit"] = limit
        response = await self.http_client.get("/sessions", params=params)
        rows = _json_or_raise(response).get("sessions")
        if not isinstance(rows, list):
            return []
        return [session for row in rows if (session := session_from_payload(row))]

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _json_or_raise(response: httpx.Response) -> dict[str, object]:
    """Return the JSON body, raising ``HttpError`` for non-2xx responses."""
    try:
        body = response.json() if response.content else {}
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    if response.is_success:
        return body
    message = body.get("error") or response.reason_phrase or "HTTP Error"
    raise HttpError(str(message), response.status_code, body or None)
