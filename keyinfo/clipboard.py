"""Clipboard copy with a short-lived "copied" confirmation."""

import time
import logging
from typing import Callable, Optional

from . import config

logger = logging.getLogger(__name__)


class ClipboardManager:
    """
    Hands text to a clipboard backend and tracks the confirmation window.

    The backend is any callable taking the text; the copy is fire-and-forget.
    """

    def __init__(self, backend: Callable[[str], None], clock: Callable[[], float] = time.monotonic,
                 confirmation_seconds: float = config.COPY_CONFIRMATION_SECONDS):
        self.backend = backend
        self.clock = clock
        self.confirmation_seconds = confirmation_seconds
        self._copied_at: Optional[float] = None

    def copy(self, text: str) -> None:
        self.backend(text)
        self._copied_at = self.clock()
        logger.debug("Value copied to clipboard")

    @property
    def confirmation_visible(self) -> bool:
        if self._copied_at is None:
            return False
        if self.clock() - self._copied_at < self.confirmation_seconds:
            return True
        self._copied_at = None
        return False

    @property
    def confirmation_text(self) -> Optional[str]:
        return config.COPY_CONFIRMATION_TEXT if self.confirmation_visible else None

    def clear_confirmation(self) -> None:
        self._copied_at = None
