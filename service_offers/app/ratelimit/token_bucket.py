"""
Token bucket rate limiter for the Offers service.
"""

import math
import threading
import time
from dataclasses import dataclass
from typing import Dict, Any, Callable

from shared.logging import get_logger


@dataclass
class _Bucket:
    tokens: float
    updated_at: float


class TokenBucketRateLimiter:
    """In-process token bucket rate limiter.

    Each (client, endpoint) pair owns a bucket of ``capacity`` tokens that
    refills continuously at ``refill_rate`` tokens per second. A request
    spends one token; an empty bucket rejects the request.
    """

    def __init__(self, capacity: int, refill_rate: float,
                 clock: Callable[[], float] = time.monotonic, max_buckets: int = 10000):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if refill_rate <= 0:
            raise ValueError("refill_rate must be positive")
        self.capacity = capacity
        self.refill_rate = refill_rate
        self.max_buckets = max_buckets
        self.logger = get_logger("offers.rate_limiter")
        self._clock = clock
        self._buckets: Dict[str, _Bucket] = {}
        self._lock = threading.Lock()

    def _make_key(self, client_id: str, endpoint: str) -> str:
        """Generate rate limit key."""
        return f"rate_limit:{client_id}:{endpoint}"

    def _refill(self, bucket: _Bucket, now: float):
        elapsed = max(0.0, now - bucket.updated_at)
        bucket.tokens = min(float(self.capacity), bucket.tokens + elapsed * self.refill_rate)
        bucket.updated_at = now

    def _seconds_until_token(self, bucket: _Bucket) -> int:
        missing = 1.0 - bucket.tokens
        return max(1, math.ceil(missing / self.refill_rate))

    def check_rate_limit(self, client_id: str, endpoint: str) -> Dict[str, Any]:
        """Spend a token for the request if one is available."""
        key = self._make_key(client_id, endpoint)

        with self._lock:
            now = self._clock()
            bucket = self._buckets.get(key)
            if bucket is None:
                if len(self._buckets) >= self.max_buckets:
                    self._prune(now)
                bucket = _Bucket(tokens=float(self.capacity), updated_at=now)
                self._buckets[key] = bucket
            else:
                self._refill(bucket, now)

            if bucket.tokens < 1.0:
                retry_after = self._seconds_until_token(bucket)
                remaining = 0
                allowed = False
            else:
                bucket.tokens -= 1.0
                remaining = int(bucket.tokens)
                allowed = True

        if not allowed:
            self.logger.warning(
                "Rate limit exceeded",
                client_id=client_id,
                endpoint=endpoint,
                limit=self.capacity,
                retry_after=retry_after
            )
            return {
                "allowed": False,
                "limit": self.capacity,
                "remaining": 0,
                "reset_in_seconds": retry_after,
                "retry_after": retry_after
            }

        return {
            "allowed": True,
            "limit": self.capacity,
            "remaining": remaining,
            "reset_in_seconds": math.ceil((self.capacity - remaining) / self.refill_rate)
        }

    def get_rate_limit_status(self, client_id: str, endpoint: str) -> Dict[str, Any]:
        """Get current rate limit status for client and endpoint."""
        key = self._make_key(client_id, endpoint)
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                remaining = self.capacity
            else:
                self._refill(bucket, self._clock())
                remaining = int(bucket.tokens)

        return {
            "limit": self.capacity,
            "remaining": remaining,
            "refill_per_second": self.refill_rate
        }

    def reset_rate_limit(self, client_id: str, endpoint: str) -> bool:
        """Reset rate limit for client and endpoint."""
        key = self._make_key(client_id, endpoint)
        with self._lock:
            removed = self._buckets.pop(key, None) is not None

        if removed:
            self.logger.info("Rate limit reset", client_id=client_id, endpoint=endpoint)
        return removed

    def get_global_stats(self) -> Dict[str, Any]:
        """Get global rate limiting statistics."""
        with self._lock:
            now = self._clock()
            for bucket in self._buckets.values():
                self._refill(bucket, now)
            total = len(self._buckets)
            exhausted = sum(1 for b in self._buckets.values() if b.tokens < 1.0)

        return {
            "total_clients": total,
            "exhausted_clients": exhausted,
            "capacity": self.capacity,
            "refill_per_second": self.refill_rate
        }

    def _prune(self, now: float):
        """Drop buckets that have refilled completely; callers hold the lock."""
        for key in list(self._buckets):
            bucket = self._buckets[key]
            self._refill(bucket, now)
            if bucket.tokens >= self.capacity:
                del self._buckets[key]
