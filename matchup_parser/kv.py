"""
Flat key-value backends the history store is layered on.

Values are JSON text. No backend offers transactions or locks.
"""
import re
from typing import Dict, List, Optional, Protocol

import requests

from .errors import StoreUnavailable
from .logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)


class KeyValueBackend(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys_with_prefix(self, prefix: str) -> List[str]: ...

    def ping(self) -> bool: ...


class MemoryBackend:
    """Process-local dict; history is lost on restart."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key):
        return self._data.get(key)

    def set(self, key, value):
        self._data[key] = value

    def delete(self, key):
        self._data.pop(key, None)

    def keys_with_prefix(self, prefix):
        return sorted(k for k in self._data if k.startswith(prefix))

    def ping(self) -> bool:
        return True


def _glob_escape(text: str) -> str:
    return re.sub(r"([*?\[\]\\])", r"\\\1", text)


class UpstashBackend:
    """Upstash Redis over its REST API (Vercel KV speaks the same protocol)."""

    def __init__(self, url: Optional[str], token: Optional[str], timeout: float = 10.0, session=None):
        self.url = (url or "").rstrip("/")
        self.token = token or ""
        self.timeout = timeout
        self.session = session or requests.Session()

    def _command(self, *args):
        if not self.url or not self.token:
            raise StoreUnavailable("Missing UPSTASH_REDIS_REST_URL or UPSTASH_REDIS_REST_TOKEN")
        try:
            res = self.session.post(
                self.url,
                json=[str(a) for a in args],
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("kv %s failed: %s", args[0], e)
            raise StoreUnavailable(f"KV request failed: {e}") from e

        try:
            body = res.json()
        except ValueError:
            body = {}
        if res.status_code >= 400 or "error" in body:
            message = body.get("error") or f"HTTP {res.status_code}"
            logger.error("kv %s rejected: %s", args[0], message)
            raise StoreUnavailable(f"KV error: {message}")
        return body.get("result")

    def get(self, key):
        return self._command("GET", key)

    def set(self, key, value):
        self._command("SET", key, value)

    def delete(self, key):
        self._command("DEL", key)

    def keys_with_prefix(self, prefix):
        # KEYS is fine for this keyspace size; switch to SCAN if it grows
        return sorted(self._command("KEYS", _glob_escape(prefix) + "*") or [])

    def ping(self) -> bool:
        return self._command("PING") == "PONG"


def build_backend(settings) -> KeyValueBackend:
    if settings.kv_backend == "upstash":
        return UpstashBackend(settings.upstash_redis_rest_url, settings.upstash_redis_rest_token,
                              timeout=settings.kv_timeout_seconds)
    return MemoryBackend()
