"""Enumerations for domain models."""

from enum import Enum


class ContributionChangeKind(str, Enum):
    """Kinds of contribution schedule change."""

    PAUSE = "pause"
    BOOST = "boost"


class SyncStatus(str, Enum):
    """Remote sync status of the coordinator."""

    IDLE = "idle"
    PENDING = "pending"  # Debounce timer armed
    WRITING = "writing"  # Remote write in flight
    FAILED = "failed"  # Last remote write failed; next edit retries
