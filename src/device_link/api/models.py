"""Request body models for the HTTP API."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """Body for ``POST /register``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    agent_id: Any = Field(default=None, alias="agentId")
    device_id: Any = Field(default=None, alias="deviceId")


class StartSessionRequest(BaseModel):
    """Body for ``POST /session``; ids are validated by the ledger."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: Any = Field(default=None, alias="userId")
    patient_id: Any = Field(default=None, alias="patientId")
    location: Any = None


class RecordRequest(BaseModel):
    """Body for creating or updating a user or patient."""

    model_config = ConfigDict(extra="ignore")

    name: Any = None
    hash: Any = None
