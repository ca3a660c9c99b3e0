"""Tests for container wiring."""

import asyncio

from device_link.containers import build_container


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)
    assert container.session_ledger is not None
    assert container.session_ledger.single_open_session is True
    assert container.registration_service is not None
    asyncio.run(container.close_resources())
