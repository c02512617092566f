"""Local (on-device) key/value store protocol."""

from typing import Protocol, Optional


class LocalStore(Protocol):
    """
    Interface for the synchronous device-local key/value store.

    Implementations raise StorageUnavailableError when the medium cannot be
    used (for example, private browsing or a read-only disk).
    """

    def get_item(self, key: str) -> Optional[str]:
        """Return the value stored under key, or None."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        ...

    def remove_item(self, key: str) -> None:
        """Remove key if present."""
        ...
