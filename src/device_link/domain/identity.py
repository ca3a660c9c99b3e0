"""Domain models for device identity resolution."""

from dataclasses import dataclass
from enum import StrEnum

WEBAUTHN_PREFIX = "webauthn:"


class IdentityMethod(StrEnum):
    """Provenance of the currently active device identifier."""

    WEBAUTHN = "webauthn"
    LOCAL = "local"
    COOKIE = "cookie"


@dataclass(frozen=True)
class DeviceIdentity:
    """A resolved device identifier and the method that produced it."""

    id: str
    method: IdentityMethod


@dataclass(frozen=True)
class CeremonyOk:
    """A platform credential was created; ``raw_id`` is its credential id."""

    raw_id: bytes


@dataclass(frozen=True)
class CeremonyUnsupported:
    """The platform offers no credential API."""


@dataclass(frozen=True)
class CeremonyFailed:
    """The ceremony ran but did not produce a credential."""

    reason: str


CeremonyResult = CeremonyOk | CeremonyUnsupported | CeremonyFailed
