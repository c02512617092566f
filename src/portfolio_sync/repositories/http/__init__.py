"""HTTP repository implementations."""

from portfolio_sync.repositories.http.remote_store import HttpRemoteStore, USER_HEADER

__all__ = [
    "HttpRemoteStore",
    "USER_HEADER",
]
