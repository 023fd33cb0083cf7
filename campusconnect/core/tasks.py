"""Deferred work that must run after the current auth callback returns.

The identity client notifies its listeners while holding a lock that is
not reentrant. Anything a listener needs from the client (the profile
row in particular) is queued here and run by the session manager once the
client call that produced the notification has returned and released the
lock.
"""
import logging
from collections import deque
from collections.abc import Callable

logger = logging.getLogger(__name__)


class TaskQueue:
    """FIFO of callables run by ``run_pending``."""

    def __init__(self):
        self._pending: deque[tuple[Callable, tuple]] = deque()

    def __len__(self) -> int:
        return len(self._pending)

    def defer(self, func: Callable, *args) -> None:
        self._pending.append((func, args))

    def run_pending(self) -> int:
        """Run queued tasks, including ones queued while running; returns the count."""
        ran = 0
        while self._pending:
            func, args = self._pending.popleft()
            try:
                func(*args)
            except Exception:
                logger.exception(f"Deferred task {getattr(func, '__name__', func)} failed")
            ran += 1
        return ran
