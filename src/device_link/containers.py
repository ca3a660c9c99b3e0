"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from device_link.adapters.store_pool import StorePool
from device_link.adapters.supabase_device_repository import SupabaseDeviceRepository
from device_link.adapters.supabase_directory_repository import (
    SupabaseDirectoryRepository,
)
from device_link.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from device_link.config import Settings
from device_link.services.directory import DirectoryService
from device_link.services.registration import DeviceRegistrationService
from device_link.services.sessions import SessionLedger


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    registration_service: DeviceRegistrationService
    directory_service: DirectoryService
    session_ledger: SessionLedger
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    pool = StorePool(
        client=supabase_client,
        max_connections=resolved_settings.store_max_connections,
        acquire_timeout=resolved_settings.store_acquire_timeout_seconds,
    )
    registration_service = DeviceRegistrationService(SupabaseDeviceRepository(pool))
    directory_service = DirectoryService(SupabaseDirectoryRepository(pool))
    session_ledger = SessionLedger(
        repository=SupabaseSessionRepository(pool),
        single_open_session=resolved_settings.single_open_session,
    )

    async def close_resources() -> None:
        # The synchronous Supabase client keeps no sockets that need closing.
        return None

    return AppContainer(
        settings=resolved_settings,
        registration_service=registration_service,
        directory_service=directory_service,
        session_ledger=session_ledger,
        close_resources=close_resources,
    )
