"""Device location sources for starting sessions."""

from dataclasses import dataclass
from typing import Protocol

from device_link.domain.sessions import Coordinates


class LocationProvider(Protocol):
    """Single-shot, high-accuracy position lookup."""

    async def locate(self) -> Coordinates:
        """Return ``(latitude, longitude)`` or raise on failure."""


class LocationUnavailableError(RuntimeError):
    """Raised when no position can be determined."""


@dataclass
class StaticLocationProvider(LocationProvider):
    """Returns a fixed position, e.g. a configured site location."""

    latitude: float
    longitude: float

    async def locate(self) -> Coordinates:
        return self.latitude, self.longitude


@dataclass
class NoLocationProvider(LocationProvider):
    """Provider for devices without positioning."""

    async def locate(self) -> Coordinates:
        raise LocationUnavailableError("Location unavailable on this device")
