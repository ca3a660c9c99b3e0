"""Tests for device registration."""

import pytest

from device_link.domain.errors import ValidationError
from device_link.services.registration import DeviceRegistrationService
from tests.conftest import InMemoryDeviceRepository


def test_body_device_id_preferred_over_cookie() -> None:
    repository = InMemoryDeviceRepository()
    service = DeviceRegistrationService(repository)

    registration = service.register(
        agent_id=" agent-1 ", device_id="body-id", cookie_device_id="cookie-id"
    )

    assert registration.device_id == "body-id"
    assert registration.agent_id == "agent-1"
    assert repository.devices == {"body-id": "agent-1"}


def test_cookie_used_when_body_blank() -> None:
    service = DeviceRegistrationService(InMemoryDeviceRepository())

    registration = service.register(device_id="   ", cookie_device_id="cookie-id")

    assert registration.device_id == "cookie-id"
    assert registration.agent_id is None


def test_registration_is_idempotent() -> None:
    repository = InMemoryDeviceRepository()
    service = DeviceRegistrationService(repository)

    service.register(device_id="d-1")
    service.register(device_id="d-1")

    assert list(repository.devices) == ["d-1"]


def test_missing_device_id_is_rejected() -> None:
    service = DeviceRegistrationService(InMemoryDeviceRepository())

    with pytest.raises(ValidationError, match="device id not provided"):
        service.register(agent_id="agent", device_id=42)
