"""Device registration against the server-side identity store."""

import logging
from dataclasses import dataclass
from typing import Protocol

from device_link.domain.errors import ValidationError

logger = logging.getLogger(__name__)


class DeviceRepository(Protocol):
    """Persistence interface for known devices."""

    def upsert_device(self, device_id: str, agent_id: str | None) -> None:
        """Insert the device or refresh its last-seen timestamp."""


@dataclass(frozen=True)
class Registration:
    """Result of registering a device."""

    agent_id: str | None
    device_id: str

    def to_payload(self) -> dict[str, object]:
        return {
            "ok": True,
            "agentId": self.agent_id,
            "deviceId": self.device_id,
            "message": "Device successfully registered or verified",
        }


@dataclass
class DeviceRegistrationService:
    """Confirms a device id, preferring the client-supplied value."""

    repository: DeviceRepository

    def register(
        self,
        agent_id: object = None,
        device_id: object = None,
        cookie_device_id: str | None = None,
    ) -> Registration:
        """Register the device; idempotent for known ids."""
        resolved_agent = _clean_text(agent_id)
        resolved_device = _clean_text(device_id) or _clean_text(cookie_device_id)
        if not resolved_device:
            raise ValidationError("device id not provided")
        self.repository.upsert_device(resolved_device, resolved_agent)
        logger.info(
            "Registered device %s for agent %s", resolved_device, resolved_agent
        )
        return Registration(agent_id=resolved_agent, device_id=resolved_device)


def _clean_text(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None
