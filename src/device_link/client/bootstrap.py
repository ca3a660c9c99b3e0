"""Client bootstrap: identity, registration, lookups and session controls.

Each activation runs strictly in order: resolve the device identity,
register it, look up the patient (by device id) and user (by agent id),
fetch the open session for the pair and finally the session history.
Activations are tagged with a generation number so that results of a
superseded activation never overwrite newer state.
"""

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from device_link.client.api_client import DeviceLinkApi, HttpxDeviceLinkApi
from device_link.client.ceremony import UnsupportedCeremony
from device_link.client.location import LocationProvider, NoLocationProvider
from device_link.client.storage import CookieJarBackend, JsonFileBackend
from device_link.domain.identity import IdentityMethod
from device_link.domain.models import PatientRecord, UserRecord
from device_link.domain.sessions import (
    ALL_SENTINEL,
    SessionRecord,
    elapsed_since,
    format_elapsed,
    format_local_time,
)
from device_link.services.identity import (
    CredentialCeremony,
    IdentityResolver,
    IdentityStore,
)

logger = logging.getLogger(__name__)

STATUS_DETECTING = "Detecting device ID…"
STATUS_READY = "Ready"
STATUS_ERROR = "Error"
LOCATION_TIMEOUT_SECONDS = 10.0
TICK_SECONDS = 1.0

_METHOD_STATUS = {
    IdentityMethod.WEBAUTHN: "Using device-bound ID (WebAuthn)",
    IdentityMethod.LOCAL: "Using local ID (browser profile)",
    IdentityMethod.COOKIE: "Using device cookie ID",
}


@dataclass
class BootstrapState:
    """Observable state of the bootstrap view."""

    status: str = STATUS_DETECTING
    error: str = ""
    device_id: str = ""
    method: IdentityMethod | None = None
    user: UserRecord | None = None
    patient: PatientRecord | None = None
    session: SessionRecord | None = None
    sessions: list[SessionRecord] = field(default_factory=list)
    elapsed: str = ""
    busy: bool = False
    timezone: str | None = None

    @property
    def started_at_local(self) -> str:
        """Start time of the open session in the display timezone."""
        started_at = self.session.started_at if self.session else None
        return format_local_time(started_at, self.timezone)

    @property
    def can_start(self) -> bool:
        return (
            self.user is not None
            and self.patient is not None
            and self.session is None
            and not self.busy
        )

    @property
    def can_end(self) -> bool:
        return self.session is not None and not self.busy


class _Superseded(Exception):
    """A newer activation started while this one was awaiting."""


@dataclass
class BootstrapOrchestrator:
    """Composes identity resolution and the session ledger into view state."""

    resolver: IdentityResolver
    api: DeviceLinkApi
    location_provider: LocationProvider
    state: BootstrapState = field(default_factory=BootstrapState)
    location_timeout: float = LOCATION_TIMEOUT_SECONDS
    tick_seconds: float = TICK_SECONDS
    _generation: int = field(default=0, init=False, repr=False)
    _ticker: asyncio.Task[None] | None = field(default=None, init=False, repr=False)

    async def activate(self, agent_id: str | None) -> BootstrapState:
        """Run one bootstrap activation for the given agent id."""
        self._generation += 1
        generation = self._generation
        self.state.error = ""
        self.state.status = STATUS_DETECTING
        self.state.user = None
        self.state.patient = None
        self.state.sessions = []
        self._set_session(None)
        try:
            await self._run(generation, agent_id)
        except _Superseded:
            logger.debug("Discarding results of superseded activation %s", generation)
        except Exception as exc:
            if generation == self._generation:
                logger.warning("Bootstrap activation failed: %s", exc)
                self.state.error = str(exc)
                self.state.status = STATUS_ERROR
        return self.state

    async def start_session(self) -> SessionRecord | None:
        """Start a session at the current location; ignored while busy."""
        if not self.state.can_start:
            return None
        user, patient = self.state.user, self.state.patient
        self.state.busy = True
        try:
            location = await asyncio.wait_for(
                self.location_provider.locate(), timeout=self.location_timeout
            )
            session = await self.api.start_session(user.id, patient.id, location)
            self._set_session(session)
            self.state.sessions = await self.api.list_sessions(
                user_id=user.id, patient_id=patient.id, limit=ALL_SENTINEL
            )
            return session
        except TimeoutError:
            self.state.error = "Timed out acquiring location"
        except Exception as exc:
            self.state.error = str(exc)
        finally:
            self.state.busy = False
        return None

    async def end_session(self) -> SessionRecord | None:
        """End the displayed open session; ignored while busy."""
        if not self.state.can_end:
            return None
        session = self.state.session
        self.state.busy = True
        try:
            ended = await self.api.end_session(session.id)
            self._set_session(None)
            self.state.sessions = await self.api.list_sessions(
                user_id=self.state.user.id if self.state.user else None,
                patient_id=self.state.patient.id if self.state.patient else None,
                limit=ALL_SENTINEL,
            )
            return ended
        except Exception as exc:
            self.state.error = str(exc)
        finally:
            self.state.busy = False
        return None

    def refresh_elapsed(self, now: datetime | None = None) -> str:
        """Recompute the elapsed display for the open session."""
        session = self.state.session
        if session is None or session.started_at is None:
            self.state.elapsed = ""
        else:
            self.state.elapsed = format_elapsed(
                elapsed_since(session.started_at, now or datetime.now(tz=UTC))
            )
        return self.state.elapsed

    async def close(self) -> None:
        """Tear down the view: stop the elapsed-time ticker."""
        await self._stop_ticker()

    async def _run(self, generation: int, agent_id: str | None) -> None:
        identity = await self.resolver.resolve()
        self._check(generation)
        self.state.device_id = identity.id
        self.state.method = identity.method
        self.state.status = _METHOD_STATUS[identity.method]

        await self.api.register(agent_id, identity.id)
        self._check(generation)

        patient = await self.api.find_patient(identity.id)
        self._check(generation)
        self.state.patient = patient

        user = None
        if agent_id:
            user = await self.api.find_user(agent_id)
            self._check(generation)
        self.state.user = user

        session = None
        if user is not None and patient is not None:
            session = await self.api.get_open_session(user.id, patient.id)
            self._check(generation)
        self._set_session(session)

        sessions = await self.api.list_sessions(
            user_id=user.id if user else None,
            patient_id=patient.id if patient else None,
            limit=ALL_SENTINEL,
        )
        self._check(generation)
        self.state.sessions = sessions
        self.state.status = STATUS_READY

    def _check(self, generation: int) -> None:
        if generation != self._generation:
            raise _Superseded

    def _set_session(self, session: SessionRecord | None) -> None:
        self.state.session = session
        self.refresh_elapsed()
        if session is None:
            self._cancel_ticker()
        elif self._ticker is None or self._ticker.done():
            self._ticker = asyncio.create_task(self._tick())

    async def _tick(self) -> None:
        while self.state.session is not None:
            await asyncio.sleep(self.tick_seconds)
            self.refresh_elapsed()

    def _cancel_ticker(self) -> None:
        if self._ticker is not None and not self._ticker.done():
            self._ticker.cancel()

    async def _stop_ticker(self) -> None:
        ticker = self._ticker
        self._cancel_ticker()
        self._ticker = None
        if ticker is not None:
            with suppress(asyncio.CancelledError):
                await ticker


def build_orchestrator(
    base_url: str,
    storage_path: Path,
    ceremony: CredentialCeremony | None = None,
    location_provider: LocationProvider | None = None,
    timezone: str | None = None,
) -> BootstrapOrchestrator:
    """Wire an orchestrator with file-backed local storage and the API cookie jar."""
    api = HttpxDeviceLinkApi.create(base_url)
    store = IdentityStore(
        local=JsonFileBackend(storage_path),
        cookie=CookieJarBackend(api.cookies),
    )
    return BootstrapOrchestrator(
        resolver=IdentityResolver(
            store=store, ceremony=ceremony or UnsupportedCeremony()
        ),
        api=api,
        location_provider=location_provider or NoLocationProvider(),
        state=BootstrapState(timezone=timezone),
    )
