import logging
import time
from collections import deque

_LOGGER = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """
    Admits at most max_requests calls per window_seconds.
    Callers over budget are delayed until the oldest request leaves the window,
    requests are never dropped.
    """

    def __init__(
        self,
        max_requests: int = 20,
        window_seconds: float = 1.0,
        clock=time.monotonic,
        sleep=time.sleep,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._sleep = sleep
        self._requests = deque()

    def _evict(self, now: float):
        while self._requests and now - self._requests[0] >= self.window_seconds:
            self._requests.popleft()

    def wait_for_slot(self):
        now = self._clock()
        self._evict(now)
        while len(self._requests) >= self.max_requests:
            wait = self.window_seconds - (now - self._requests[0])
            _LOGGER.debug(f"Rate limit reached, waiting {wait:.3f}s")
            self._sleep(wait)
            now = self._clock()
            self._evict(now)
        self._requests.append(now)

    def __len__(self):
        return len(self._requests)
