"""Change notification for permission data."""

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class Notifier:
    """Registry of change listeners, keyed by callback identity.

    Subscribing the same callable twice registers it once. Listeners run
    synchronously, in subscription order, with no arguments.
    """

    def __init__(self) -> None:
        self._listeners: dict[Listener, None] = {}

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """Register *callback*; the returned function removes it again."""
        self._listeners[callback] = None

        def unsubscribe() -> None:
            self._listeners.pop(callback, None)

        return unsubscribe

    def notify(self) -> None:
        # Snapshot: listeners may unsubscribe while being notified
        for callback in list(self._listeners):
            try:
                callback()
            except Exception:
                logger.exception("Permission change listener %r failed", callback)

    def __len__(self) -> int:
        return len(self._listeners)

    def __contains__(self, callback: object) -> bool:
        return callback in self._listeners
