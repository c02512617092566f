"""Cross-context state broadcast (publish/subscribe)."""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateBroadcast:
    """
    Full-state update published by one context for all the others.

    Receivers replace their view with `state`; it is never a patch.
    """

    origin: str
    state: dict[str, Any]


BroadcastListener = Callable[[StateBroadcast], None]


class BroadcastChannel(Protocol):
    """
    Transport for state broadcasts between contexts (tabs, windows, processes).

    Delivery is best-effort and at most once per publish.
    """

    def publish(self, message: StateBroadcast) -> None:
        """Deliver `message` to current subscribers."""
        ...

    def subscribe(self, listener: BroadcastListener) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        ...


class InProcessBroadcastChannel:
    """
    Synchronous in-process channel.

    Every subscriber (including the publisher's own) receives a private
    copy of the payload; filtering by origin is up to the receiver.
    """

    def __init__(self):
        self._listeners: list[BroadcastListener] = []

    def publish(self, message: StateBroadcast) -> None:
        for listener in list(self._listeners):
            delivered = StateBroadcast(origin=message.origin, state=copy.deepcopy(message.state))
            try:
                listener(delivered)
            except Exception:
                logger.exception("Broadcast listener failed for message from %s", message.origin)

    def subscribe(self, listener: BroadcastListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)
