"""Repository protocol definitions (interfaces)."""

from portfolio_sync.repositories.protocols.local_store import LocalStore
from portfolio_sync.repositories.protocols.remote_store import RemoteStore

__all__ = [
    "LocalStore",
    "RemoteStore",
]
