"""Device identity resolution.

An identifier is resolved through a fallback chain:

1. the device cookie, set by the server on first contact;
2. a value persisted in client-local storage;
3. an id derived from a platform credential ceremony;
4. a freshly generated random id.

:func:`resolve_identity` decides which value wins and what must be written
back; :class:`IdentityResolver` performs the reads, the ceremony and the
writes against an :class:`IdentityStore`.
"""

import base64
import logging
import random
import secrets
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from device_link.domain.identity import (
    WEBAUTHN_PREFIX,
    CeremonyFailed,
    CeremonyOk,
    CeremonyResult,
    CeremonyUnsupported,
    DeviceIdentity,
    IdentityMethod,
)

logger = logging.getLogger(__name__)

LOCAL_DEVICE_KEY = "device-id"
DEVICE_COOKIE_NAME = "device_id"
DEVICE_TOKEN_BYTES = 32


class KeyValueBackend(Protocol):
    """A single persistence surface for the device identifier."""

    def read(self, key: str) -> str | None:
        """Return the stored value, if any."""

    def write(self, key: str, value: str) -> None:
        """Persist a value."""


class CredentialCeremony(Protocol):
    """Creates a device-bound credential and reports the outcome."""

    async def create(self) -> CeremonyResult:
        """Run the ceremony; never raises."""


@dataclass
class IdentityStore:
    """Client-local storage and the cookie slot, kept independent."""

    local: KeyValueBackend
    cookie: KeyValueBackend
    local_key: str = LOCAL_DEVICE_KEY
    cookie_key: str = DEVICE_COOKIE_NAME

    def read_local(self) -> str | None:
        return _clean(self.local.read(self.local_key))

    def read_cookie(self) -> str | None:
        return _clean(self.cookie.read(self.cookie_key))

    def write_local(self, value: str) -> None:
        self.local.write(self.local_key, value)

    def write_cookie(self, value: str) -> None:
        self.cookie.write(self.cookie_key, value)


@dataclass(frozen=True)
class Resolution:
    """Outcome of a resolution: the identity and the writes it requires.

    ``writes`` is ordered; local storage always precedes the cookie.
    """

    identity: DeviceIdentity
    writes: tuple[str, ...] = ()


def resolve_identity(
    cookie: str | None,
    local: str | None,
    ceremony: CeremonyResult | None,
    mint: Callable[[], str] | None = None,
) -> Resolution:
    """Pick the winning identifier and the storage writes to perform."""
    cookie_value = _clean(cookie)
    if cookie_value:
        return Resolution(DeviceIdentity(cookie_value, IdentityMethod.COOKIE))

    local_value = _clean(local)
    if local_value:
        return Resolution(
            DeviceIdentity(local_value, IdentityMethod.LOCAL), writes=("cookie",)
        )

    if isinstance(ceremony, CeremonyOk) and ceremony.raw_id:
        derived = derive_webauthn_id(ceremony.raw_id)
        return Resolution(
            DeviceIdentity(derived, IdentityMethod.WEBAUTHN),
            writes=("local", "cookie"),
        )

    minted = (mint or mint_local_id)()
    return Resolution(
        DeviceIdentity(minted, IdentityMethod.LOCAL), writes=("local", "cookie")
    )


@dataclass
class IdentityResolver:
    """Resolves and persists the device identifier."""

    store: IdentityStore
    ceremony: CredentialCeremony
    mint: Callable[[], str] = field(default=lambda: mint_local_id())

    async def resolve(self) -> DeviceIdentity:
        """Return a non-empty device identity, persisting new values."""
        cookie = self.store.read_cookie()
        local = None if cookie else self.store.read_local()
        ceremony: CeremonyResult | None = None
        if not cookie and not local:
            ceremony = await self._run_ceremony()

        resolution = resolve_identity(cookie, local, ceremony, mint=self.mint)
        value = resolution.identity.id
        for target in resolution.writes:
            if target == "local":
                self.store.write_local(value)
            else:
                self.store.write_cookie(value)
        logger.info("Resolved device identity via %s", resolution.identity.method)
        return resolution.identity

    async def _run_ceremony(self) -> CeremonyResult:
        try:
            result = await self.ceremony.create()
        except Exception as exc:  # noqa: BLE001
            result = CeremonyFailed(reason=str(exc) or type(exc).__name__)
        if isinstance(result, CeremonyUnsupported):
            logger.debug("Credential ceremony unsupported, falling back")
        elif isinstance(result, CeremonyFailed):
            logger.debug("Credential ceremony failed: %s", result.reason)
        return result


def derive_webauthn_id(raw_id: bytes) -> str:
    """Derive a stable id from a credential id (base64url, no padding)."""
    encoded = base64.urlsafe_b64encode(raw_id).decode("ascii").rstrip("=")
    return f"{WEBAUTHN_PREFIX}{encoded}"


def mint_local_id() -> str:
    """Generate a random UUID, or a weaker composite without an OS entropy source."""
    try:
        return str(uuid.uuid4())
    except NotImplementedError:
        return _base36(random.getrandbits(52)) + _base36(int(time.time() * 1000))


def mint_device_token(num_bytes: int = DEVICE_TOKEN_BYTES) -> str:
    """Generate the server-side device cookie value (hex)."""
    return secrets.token_hex(num_bytes)


def _base36(value: int) -> str:
    alphabet = "0123456789abcdefghijklmnopqrstuvwxyz"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(alphabet[remainder])
    return "".join(reversed(digits)) or "0"


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None
