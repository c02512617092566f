"""In-memory local store and the failure-tolerant wrapper used by the coordinator."""

import logging
from typing import Optional

from portfolio_sync.core.exceptions import StorageUnavailableError
from portfolio_sync.repositories.protocols import LocalStore

logger = logging.getLogger(__name__)

_PROBE_KEY = "__local_store_probe__"


class InMemoryLocalStore:
    """
    Process-local dict store.

    With available=False every call raises StorageUnavailableError, which is
    how private-mode storage behaves.
    """

    def __init__(self, available: bool = True):
        self.available = available
        self._data: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        self._check()
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._check()
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._check()
        self._data.pop(key, None)

    def _check(self) -> None:
        if not self.available:
            raise StorageUnavailableError()


class SafeLocalStore:
    """
    Wraps a LocalStore so that storage failures never reach the caller.

    Reads return None and writes become no-ops when the underlying store is
    unavailable; failures are logged at debug level only.
    """

    def __init__(self, store: LocalStore):
        self._store = store

    def is_available(self) -> bool:
        """Probe the store with a throwaway key."""
        try:
            self._store.set_item(_PROBE_KEY, _PROBE_KEY)
            self._store.remove_item(_PROBE_KEY)
            return True
        except Exception:
            return False

    def get_item(self, key: str) -> Optional[str]:
        try:
            return self._store.get_item(key)
        except Exception as exc:
            logger.debug("Local store read of %s failed: %s", key, exc)
            return None

    def set_item(self, key: str, value: str) -> bool:
        """Store value; returns False when the write did not happen."""
        try:
            self._store.set_item(key, value)
            return True
        except Exception as exc:
            logger.debug("Local store write of %s failed: %s", key, exc)
            return False

    def remove_item(self, key: str) -> None:
        try:
            self._store.remove_item(key)
        except Exception as exc:
            logger.debug("Local store delete of %s failed: %s", key, exc)
