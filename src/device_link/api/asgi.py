"""ASGI entrypoint for the device link API."""

from device_link.api.app import create_app
from device_link.containers import build_container

app = create_app(build_container())
