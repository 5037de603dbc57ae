"""Rate limiters and a rate-limited, de-duplicating work queue."""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from collections import deque
from queue import Empty
from typing import Any, Callable, Hashable, Optional

Clock = Callable[[], float]


class ShutDown(Exception):
    """Raised by RateLimitingQueue.get once the queue is shut down and drained."""


class ItemExponentialFailureRateLimiter:
    """Delays each item by base_delay * 2**failures, capped at max_delay."""

    def __init__(self, base_delay: float, max_delay: float) -> None:
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._failures: dict[Hashable, int] = {}
        self._lock = threading.Lock()

    def when(self, item: Hashable) -> float:
        with self._lock:
            exp = self._failures.get(item, 0)
            self._failures[item] = exp + 1
        try:
            backoff = self.base_delay * 2.0**exp
        except OverflowError:
            return self.max_delay
        return min(backoff, self.max_delay)

    def forget(self, item: Hashable) -> None:
        with self._lock:
            self._failures.pop(item, None)

    def num_requeues(self, item: Hashable) -> int:
        with self._lock:
            return self._failures.get(item, 0)


class BucketRateLimiter:
    """A token bucket shared by all items: ``rate`` tokens per second, ``burst`` at most."""

    def __init__(self, rate: float, burst: int, clock: Clock = time.monotonic) -> None:
        if rate <= 0:
            raise ValueError("rate must be positive")
        self.rate = rate
        self.burst = burst
        self._clock = clock
        self._tokens = float(burst)
        self._last = clock()
        self._lock = threading.Lock()

    def when(self, item: Hashable) -> float:
        with self._lock:
            now = self._clock()
            elapsed = max(0.0, now - self._last)
            self._tokens = min(float(self.burst), self._tokens + elapsed * self.rate)
            self._last = now
            self._tokens -= 1
            if self._tokens >= 0:
                return 0.0
            return -self._tokens / self.rate

    def forget(self, item: Hashable) -> None:
        pass

    def num_requeues(self, item: Hashable) -> int:
        return 0


class MaxOfRateLimiter:
    """Combines limiters, using the longest delay any of them asks for."""

    def __init__(self, *limiters: Any) -> None:
        if not limiters:
            raise ValueError("at least one rate limiter is required")
        self.limiters = limiters

    def when(self, item: Hashable) -> float:
        return max(limiter.when(item) for limiter in self.limiters)

    def forget(self, item: Hashable) -> None:
        for limiter in self.limiters:
            limiter.forget(item)

    def num_requeues(self, item: Hashable) -> int:
        return max(limiter.num_requeues(item) for limiter in self.limiters)


def default_controller_rate_limiter() -> MaxOfRateLimiter:
    """Per-item exponential back-off from 5 ms to 1000 s, plus 50 qps overall with burst 300."""
    return MaxOfRateLimiter(
        ItemExponentialFailureRateLimiter(0.005, 1000.0),
        BucketRateLimiter(50, 300),
    )


class RateLimitingQueue:
    """A work queue that never hands the same item to two workers at once.

    Items added while queued are coalesced; items added while being processed
    are queued again when processing is marked done.
    """

    def __init__(self, rate_limiter: Any = None, clock: Clock = time.monotonic) -> None:
        self._limiter = rate_limiter if rate_limiter is not None else default_controller_rate_limiter()
        self._clock = clock
        self._cond = threading.Condition()
        self._queue: deque[Hashable] = deque()
        self._dirty: set[Hashable] = set()
        self._processing: set[Hashable] = set()
        self._waiting: dict[Hashable, float] = {}
        self._heap: list[tuple[float, int, Hashable]] = []
        self._seq = itertools.count()
        self._shutting_down = False

    def __len__(self) -> int:
        with self._cond:
            return len(self._queue)

    def _insert(self, item: Hashable) -> None:
        if self._shutting_down or item in self._dirty:
            return
        self._dirty.add(item)
        if item in self._processing:
            return
        self._queue.append(item)
        self._cond.notify()

    def _promote_ready(self) -> None:
        now = self._clock()
        while self._heap and self._heap[0][0] <= now:
            ready, _, item = heapq.heappop(self._heap)
            if self._waiting.get(item) != ready:
                continue
            del self._waiting[item]
            self._insert(item)

    def add(self, item: Hashable) -> None:
        with self._cond:
            self._insert(item)

    def add_after(self, item: Hashable, delay: float) -> None:
        with self._cond:
            if self._shutting_down:
                return
            if delay <= 0:
                self._insert(item)
                return
            ready = self._clock() + delay
            current = self._waiting.get(item)
            if current is not None and current <= ready:
                return
            self._waiting[item] = ready
            heapq.heappush(self._heap, (ready, next(self._seq), item))
            self._cond.notify_all()

    def add_rate_limited(self, item: Hashable) -> None:
        self.add_after(item, self._limiter.when(item))

    def get(self, timeout: Optional[float] = None) -> Hashable:
        """Take the next item, blocking until one is ready.

        Raises ShutDown once the queue is shut down and empty, and
        queue.Empty if ``timeout`` seconds pass without an item.
        """
        end = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while True:
                self._promote_ready()
                if self._queue:
                    item = self._queue.popleft()
                    self._processing.add(item)
                    self._dirty.discard(item)
                    return item
                if self._shutting_down:
                    raise ShutDown("queue is shut down")
                wait: Optional[float] = None
                if end is not None:
                    remaining = end - time.monotonic()
                    if remaining <= 0:
                        raise Empty
                    wait = remaining
                if self._heap:
                    until = max(0.0, self._heap[0][0] - self._clock())
                    wait = until if wait is None else min(wait, until)
                self._cond.wait(wait)

    def done(self, item: Hashable) -> None:
        with self._cond:
            self._processing.discard(item)
            if item in self._dirty:
                self._queue.append(item)
                self._cond.notify()
            elif not self._processing:
                self._cond.notify_all()

    def forget(self, item: Hashable) -> None:
        self._limiter.forget(item)

    def num_requeues(self, item: Hashable) -> int:
        return self._limiter.num_requeues(item)

    def shut_down(self) -> None:
        with self._cond:
            self._shutting_down = True
            self._waiting.clear()
            self._heap.clear()
            self._cond.notify_all()

    def shutting_down(self) -> bool:
        with self._cond:
            return self._shutting_down