"""Change notification for UI collaborators."""

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

DOCUMENTS_CHANGED = "documents_changed"


class EventEmitter:
    """Calls subscribers when documents change. No payload: subscribers re-read state."""

    def __init__(self, name: str = DOCUMENTS_CHANGED):
        self.name = name
        self._callbacks: list[Callable[[], None]] = []

    def subscribe(self, callback: Callable[[], None]) -> None:
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unsubscribe(self, callback: Callable[[], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def emit(self) -> None:
        for callback in list(self._callbacks):
            try:
                callback()
            except Exception as e:
                logger.warning(f"{self.name} subscriber failed: {e}")
