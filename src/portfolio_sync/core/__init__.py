"""Core utilities and shared functionality."""

from portfolio_sync.core.timezone import (
    now_utc,
    to_utc,
    parse_datetime_utc,
    isoformat_utc,
    UTC_TZ,
)
from portfolio_sync.core.exceptions import (
    AppError,
    ValidationError,
    NotFoundError,
    NotInitializedError,
    SignInRequiredError,
    IdentityMismatchError,
    StorageUnavailableError,
    RemoteStoreError,
    RemoteWriteError,
)

__all__ = [
    "now_utc",
    "to_utc",
    "parse_datetime_utc",
    "isoformat_utc",
    "UTC_TZ",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "NotInitializedError",
    "SignInRequiredError",
    "IdentityMismatchError",
    "StorageUnavailableError",
    "RemoteStoreError",
    "RemoteWriteError",
]
