"""Supabase-backed device registry."""

from dataclasses import dataclass
from datetime import UTC, datetime

from device_link.adapters.store_pool import StorePool
from device_link.services.registration import DeviceRepository


@dataclass
class SupabaseDeviceRepository(DeviceRepository):
    """Supabase implementation for registered devices."""

    pool: StorePool

    def upsert_device(self, device_id: str, agent_id: str | None) -> None:
        """Insert or refresh a device row keyed by ``device_id``."""
        with self.pool.connection() as client:
            client.table("devices").upsert(
                {
                    "device_id": device_id,
                    "agent_id": agent_id,
                    "last_seen_at": datetime.now(tz=UTC).isoformat(),
                },
                on_conflict="device_id",
            ).execute()
