"""Per-client token bucket rate limiting for the relay endpoints."""

import math
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock


@dataclass
class _Bucket:
    tokens: float
    updated_at: float


class TokenBucketLimiter:
    """Bounded map of client address -> token bucket.

    Each address may spend ``max_requests`` tokens, refilled continuously over
    ``window_seconds``. Buckets idle for a full window are swept lazily, and
    the least recently seen address is dropped once ``max_clients`` is reached.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        max_clients: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.max_clients = max_clients
        self._refill_rate = max_requests / window_seconds
        self._clock = clock
        self._lock = Lock()
        self._buckets: OrderedDict[str, _Bucket] = OrderedDict()
        self._last_sweep = clock()

    def acquire(self, address: str) -> float:
        """Spend one token for address.

        Returns 0 when allowed, else the number of seconds until a token is free.
        """
        with self._lock:
            now = self._clock()
            self._maybe_sweep(now)

            bucket = self._buckets.get(address)
            if bucket is None:
                bucket = _Bucket(tokens=float(self.max_requests), updated_at=now)
                self._buckets[address] = bucket
                while len(self._buckets) > self.max_clients:
                    self._buckets.popitem(last=False)
            else:
                self._buckets.move_to_end(address)
                elapsed = now - bucket.updated_at
                bucket.tokens = min(self.max_requests, bucket.tokens + elapsed * self._refill_rate)
                bucket.updated_at = now

            if bucket.tokens >= 1:
                bucket.tokens -= 1
                return 0.0
            return (1 - bucket.tokens) / self._refill_rate

    def retry_after(self, wait_seconds: float) -> int:
        return max(1, math.ceil(wait_seconds))

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)

    def _maybe_sweep(self, now: float) -> None:
        """Drop buckets idle for a full window (they would be full anyway)."""
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        stale = [
            address
            for address, bucket in self._buckets.items()
            if now - bucket.updated_at >= self.window_seconds
        ]
        for address in stale:
            del self._buckets[address]
