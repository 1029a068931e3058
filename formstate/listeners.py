"""
Listener registry for form change notifications.

Listeners are plain callables taking the field collection. Each model owns
its own registry; nothing is process-wide.
"""

from typing import Callable, Dict, List, Mapping
import logging

from .field import FormField

logger = logging.getLogger(__name__)

FieldListener = Callable[[Dict[str, FormField]], None]


class ListenerRegistry:
    """
    Ordered listener registrations with reentrancy-safe notification.

    The same callable may be registered more than once; it is then called
    once per registration and must be removed as many times as it was added.
    A listener that mutates the model while being notified does not trigger
    a nested round. The nested notification is queued and delivered once,
    after the current round has reached every listener.
    """

    def __init__(self):
        self._listeners: List[FieldListener] = []
        self._notifying = False
        self._pending = False

    def __len__(self) -> int:
        return len(self._listeners)

    def add(self, listener: FieldListener) -> None:
        self._listeners.append(listener)
        logger.debug(f"Added listener {listener!r} ({len(self._listeners)} registered)")

    def remove(self, listener: FieldListener) -> bool:
        """
        Remove one registration of ``listener``.

        Returns:
            True if a registration was removed, False if none was found
        """
        try:
            self._listeners.remove(listener)
        except ValueError:
            logger.debug(f"Listener not registered: {listener!r}")
            return False
        return True

    def notify(self, fields: Mapping[str, FormField]) -> None:
        """
        Call every registered listener with a fresh copy of ``fields``.

        Each round hands listeners a new dict so observers comparing by
        identity see a change on every notification.
        """
        if self._notifying:
            self._pending = True
            return

        self._notifying = True
        try:
            while True:
                self._pending = False
                self._fire(fields)
                if not self._pending:
                    break
        finally:
            self._notifying = False
            self._pending = False

    def _fire(self, fields: Mapping[str, FormField]) -> None:
        snapshot = dict(fields)
        # Copy so listeners may add or remove registrations while being called
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception(f"Error in form change listener {listener!r}")
