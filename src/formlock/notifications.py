"""
Toast notification sink.

Fire-and-forget: the session calls the notifier with a message and moves on.
The toast stays visible for `duration` seconds (default: the form config's
`toast_duration`) after the most recent message; every new message, identical
or not, restarts that timer. Visibility is computed from an injectable clock
instead of a background timer thread.
"""
import logging
import time
from typing import Callable, List, Optional

from formlock.config import get_default_form_config

logger = logging.getLogger(__name__)


class ToastNotifier:
    """Notification sink with a self-resetting display timer."""

    def __init__(
        self,
        duration: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if duration is None:
            duration = get_default_form_config().toast_duration
        self.duration = duration
        self._clock = clock
        self.message: Optional[str] = None
        self._shown_at: Optional[float] = None
        self.history: List[str] = []

    def __call__(self, message: str) -> None:
        self.message = message
        self._shown_at = self._clock()
        self.history.append(message)
        logger.debug(f"TOAST: {message}")

    def is_visible(self) -> bool:
        if self._shown_at is None:
            return False
        return self._clock() - self._shown_at < self.duration

    def visible_message(self) -> Optional[str]:
        return self.message if self.is_visible() else None
