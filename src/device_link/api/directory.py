"""User and patient endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Query, Request, Response, status

from device_link.api.models import RecordRequest

if TYPE_CHECKING:
    from device_link.containers import AppContainer

router = APIRouter(tags=["directory"])


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.get("/user")
def find_user(
    request: Request, user_hash: str | None = Query(default=None, alias="hash")
) -> dict[str, object]:
    """Look up a single user by hash."""
    user = _container(request).directory_service.find_user(user_hash)
    return {"ok": True, "user": user.to_payload() if user else None}


@router.post("/user")
def register_user(
    request: Request, body: RecordRequest | None = None
) -> dict[str, object]:
    """Create a user; a random hash is generated when none is supplied."""
    payload = body or RecordRequest()
    service = _container(request).directory_service
    user = service.register_user(payload.name, payload.hash)
    return {"ok": True, "user": user.to_payload()}


@router.get("/patient")
def find_patient(
    request: Request, patient_hash: str | None = Query(default=None, alias="hash")
) -> dict[str, object]:
    """Look up a single patient by hash."""
    patient = _container(request).directory_service.find_patient(patient_hash)
    return {"ok": True, "patient": patient.to_payload() if patient else None}


@router.get("/users")
def list_users(
    request: Request, limit: str | None = None, offset: str | None = None
) -> dict[str, object]:
    users = _container(request).directory_service.list_users(limit, offset)
    return {"ok": True, "users": [user.to_payload() for user in users]}


@router.post("/users", status_code=status.HTTP_201_CREATED)
def create_user(request: Request, body: RecordRequest) -> dict[str, object]:
    user = _container(request).directory_service.create_user(body.name, body.hash)
    return {"ok": True, "user": user.to_payload()}


@router.get("/patients")
def list_patients(
    request: Request, limit: str | None = None, offset: str | None = None
) -> dict[str, object]:
    patients = _container(request).directory_service.list_patients(limit, offset)
    return {"ok": True, "patients": [patient.to_payload() for patient in patients]}


@router.post("/patients", status_code=status.HTTP_201_CREATED)
def create_patient(request: Request, body: RecordRequest) -> dict[str, object]:
    patient = _container(request).directory_service.create_patient(body.name, body.hash)
    return {"ok": True, "patient": patient.to_payload()}


@router.get("/users/{user_id}")
def get_user(user_id: str, request: Request) -> dict[str, object]:
    user = _container(request).directory_service.get_user(user_id)
    return {"ok": True, "user": user.to_payload()}


@router.put("/users/{user_id}")
def update_user(
    user_id: str, body: RecordRequest, request: Request
) -> dict[str, object]:
    """Update only the fields present in the body."""
    changes = body.model_dump(include=body.model_fields_set)
    user = _container(request).directory_service.update_user(user_id, changes)
    return {"ok": True, "user": user.to_payload()}


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: str, request: Request) -> Response:
    _container(request).directory_service.delete_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
