"""
Per-key token bucket used to rate limit reset-code requests.

The resend cooldown in the client is advisory; this is the limit the
server actually enforces. Buckets live in process memory, so run one
worker or put a shared limiter in front when scaling out.
"""

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from loguru import logger

from storefront.core.config import settings


@dataclass
class TokenBucket:
    capacity: int
    refill_seconds: float
    tokens: float
    updated_at: float

    def refill(self, now: float):
        elapsed = max(0.0, now - self.updated_at)
        self.tokens = min(self.capacity, self.tokens + elapsed / self.refill_seconds)
        self.updated_at = now

    def take(self, now: float) -> bool:
        self.refill(now)
        if self.tokens >= 1:
            self.tokens -= 1
            return True
        return False

    def retry_after(self, now: float) -> int:
        self.refill(now)
        if self.tokens >= 1:
            return 0
        return math.ceil((1 - self.tokens) * self.refill_seconds)


class RequestThrottle:
    """Token buckets keyed by a normalized identifier (the email address)."""

    def __init__(
        self,
        capacity: Optional[int] = None,
        refill_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.capacity = capacity or settings.OTP_REQUEST_BUCKET_CAPACITY
        self.refill_seconds = refill_seconds or settings.OTP_REQUEST_REFILL_SECONDS
        self.clock = clock
        self._buckets: Dict[str, TokenBucket] = {}
        self._lock = threading.Lock()

    def _bucket(self, key: str, now: float) -> TokenBucket:
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = TokenBucket(self.capacity, self.refill_seconds, float(self.capacity), now)
            self._buckets[key] = bucket
        return bucket

    def allow(self, key: str) -> bool:
        """Take one token for ``key``; False when the bucket is empty."""
        with self._lock:
            now = self.clock()
            allowed = self._bucket(key, now).take(now)
            self._prune(now)
        if not allowed:
            logger.warning(f"Throttled request for {key}")
        return allowed

    def retry_after(self, key: str) -> int:
        with self._lock:
            now = self.clock()
            return self._bucket(key, now).retry_after(now)

    def _prune(self, now: float):
        # Full buckets carry no state worth keeping
        idle = [
            key for key, bucket in self._buckets.items()
            if now - bucket.updated_at >= bucket.capacity * bucket.refill_seconds
        ]
        for key in idle:
            del self._buckets[key]


_request_throttle = None


def get_request_throttle() -> RequestThrottle:
    """Get or create the reset-code request throttle."""
    global _request_throttle
    if _request_throttle is None:
        _request_throttle = RequestThrottle()
    return _request_throttle
