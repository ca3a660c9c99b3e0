"""Bounded access to the shared Supabase client."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

import httpx
from supabase import Client, PostgrestAPIError

from device_link.domain.errors import TransientIOError


@dataclass
class StorePool:
    """Hands out the shared client to at most ``max_connections`` callers.

    PostgREST and transport failures raised while a slot is held surface as
    ``TransientIOError`` carrying the underlying message.
    """

    client: Client
    max_connections: int = 10
    acquire_timeout: float = 10.0
    _slots: threading.BoundedSemaphore = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_connections < 1:
            raise ValueError("max_connections must be at least 1")
        self._slots = threading.BoundedSemaphore(self.max_connections)

    @contextmanager
    def connection(self) -> Iterator[Client]:
        """Acquire a slot for the duration of one repository operation."""
        if not self._slots.acquire(timeout=self.acquire_timeout):
            raise TransientIOError("Backing store is busy, try again")
        try:
            yield self.client
        except PostgrestAPIError as exc:
            raise TransientIOError(exc.message or str(exc)) from exc
        except httpx.HTTPError as exc:
            raise TransientIOError(str(exc) or type(exc).__name__) from exc
        finally:
            self._slots.release()
