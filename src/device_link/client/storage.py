"""Key-value backends for the client-held device identifier."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

import httpx

logger = logging.getLogger(__name__)


@dataclass
class JsonFileBackend:
    """Persists values in a small JSON file, the client's local storage."""

    path: Path

    def read(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def write(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data), encoding="utf-8")
        tmp_path.replace(self.path)

    def _load(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable identity file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}


@dataclass
class CookieJarBackend:
    """Reads and writes the device cookie in an httpx cookie jar."""

    cookies: httpx.Cookies
    domain: str = ""

    def read(self, key: str) -> str | None:
        try:
            return self.cookies.get(key, domain=self.domain or None)
        except httpx.CookieConflict:
            logger.warning("Multiple %s cookies present, using the first", key)
            return next(
                (cookie.value for cookie in self.cookies.jar if cookie.name == key),
                None,
            )

    def write(self, key: str, value: str) -> None:
        self.cookies.set(key, value, domain=self.domain, path="/")


@dataclass
class MemoryBackend:
    """Process-local backend, for embedding and tests."""

    values: dict[str, str]

    def __init__(self, values: dict[str, str] | None = None) -> None:
        self.values = dict(values or {})

    def read(self, key: str) -> str | None:
        return self.values.get(key)

    def write(self, key: str, value: str) -> None:
        self.values[key] = value
