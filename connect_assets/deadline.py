"""
Module providing the single deadline/cancellation signal shared by a command.
"""
import threading
import time
from typing import Callable, Optional

from .errors import DeadlineExceededError


class Deadline:
    """A cancellable deadline threaded through every network call and poll.

    The deadline fires either when its timeout elapses or when cancel() is
    called, whichever comes first.
    """

    def __init__(self, timeout: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        """Initialize the deadline.

        Args:
            timeout: Seconds until the deadline fires. None means no time limit.
            clock: Monotonic clock used to measure elapsed time
        """
        self._clock = clock
        self._expires_at = clock() + timeout if timeout is not None else None
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Fire the deadline immediately."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline fires, or None if unbounded."""
        if self._cancelled.is_set():
            return 0.0
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def wait(self, seconds: float) -> bool:
        """Wait up to `seconds`, returning early if the deadline fires.

        Args:
            seconds: How long to wait

        Returns:
            True if the deadline fired before or during the wait
        """
        remaining = self.remaining()
        if remaining is not None and remaining <= seconds:
            self._cancelled.wait(remaining)
            return True
        return self._cancelled.wait(seconds)

    def check(self, operation: str) -> None:
        """Raise DeadlineExceededError if the deadline has already fired."""
        if self.expired:
            raise DeadlineExceededError(operation)

    def request_timeout(self, default: float) -> float:
        """Timeout for one request: the default capped by the time remaining."""
        remaining = self.remaining()
        if remaining is None:
            return default
        return min(default, remaining)
