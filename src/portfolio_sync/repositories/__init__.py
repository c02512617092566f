"""Repository layer - persistence tier abstractions and implementations."""

from portfolio_sync.repositories.protocols import (
    LocalStore,
    RemoteStore,
)
from portfolio_sync.repositories.local_store import (
    InMemoryLocalStore,
    SafeLocalStore,
)

__all__ = [
    "LocalStore",
    "RemoteStore",
    "InMemoryLocalStore",
    "SafeLocalStore",
]
