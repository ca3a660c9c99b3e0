"""Platform credential ceremonies used as a device identity source."""

import asyncio
import secrets
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from device_link.domain.identity import (
    CeremonyFailed,
    CeremonyOk,
    CeremonyResult,
    CeremonyUnsupported,
)

ES256 = -7


@dataclass(frozen=True)
class CredentialOptions:
    """Public-key credential creation options for the identity ceremony."""

    rp_name: str = "Device ID Bootstrap"
    user_id: bytes = b"device-seed"
    user_name: str = "device@example.invalid"
    user_display_name: str = "Device"
    timeout_seconds: float = 30.0
    challenge: bytes = field(default_factory=lambda: secrets.token_bytes(16))

    def to_public_key_options(self) -> dict[str, object]:
        """Return WebAuthn ``PublicKeyCredentialCreationOptions``."""
        return {
            "challenge": self.challenge,
            "rp": {"name": self.rp_name},
            "user": {
                "id": self.user_id,
                "name": self.user_name,
                "displayName": self.user_display_name,
            },
            "pubKeyCredParams": [{"type": "public-key", "alg": ES256}],
            "authenticatorSelection": {
                "authenticatorAttachment": "platform",
                "userVerification": "preferred",
                "residentKey": "preferred",
                "requireResidentKey": False,
            },
            "attestation": "none",
            "timeout": int(self.timeout_seconds * 1000),
        }


@dataclass
class UnsupportedCeremony:
    """Ceremony for platforms without a credential API."""

    async def create(self) -> CeremonyResult:
        return CeremonyUnsupported()


CredentialFactory = Callable[[dict[str, object]], Awaitable[bytes | None]]


@dataclass
class CallableCeremony:
    """Runs an async credential factory and maps every outcome to a result.

    The factory receives the public-key options and returns the credential's
    raw id, or ``None`` when no credential was created.
    """

    factory: CredentialFactory
    options: CredentialOptions = field(default_factory=CredentialOptions)

    async def create(self) -> CeremonyResult:
        try:
            raw_id = await asyncio.wait_for(
                self.factory(self.options.to_public_key_options()),
                timeout=self.options.timeout_seconds,
            )
        except TimeoutError:
            return CeremonyFailed(reason="timeout")
        except NotImplementedError:
            return CeremonyUnsupported()
        except Exception as exc:  # noqa: BLE001
            return CeremonyFailed(reason=str(exc) or type(exc).__name__)
        if not raw_id:
            return CeremonyFailed(reason="no credential returned")
        return CeremonyOk(raw_id=bytes(raw_id))
