"""Rate limiting dependency for FastAPI.

Token bucket per client address. The limiter is owned by the
application instance so separate apps never share buckets.
"""

import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass
class RateLimitBucket:
    """Token bucket for single client.

    Attributes:
        tokens: Current available request tokens.
        last_update: Monotonic timestamp of last refill.
    """

    tokens: float
    last_update: float = field(default_factory=time.monotonic)


# =============================================================================
# RATE LIMITER
# =============================================================================


class RateLimiter:
    """Thread-safe in-memory token bucket limiter.

    Attributes:
        _max_requests: Bucket capacity, requests per minute.
        _refill_rate: Tokens added per second.
        _buckets: Client key to bucket mapping.
        _lock: Thread synchronization lock.
    """

    def __init__(self, max_requests_per_minute: int) -> None:
        self._max_requests = max_requests_per_minute
        self._refill_rate = max_requests_per_minute / 60.0
        self._buckets: dict[str, RateLimitBucket] = {}
        self._lock = Lock()

    def is_allowed(self, client_key: str) -> bool:
        """Consume one token for a client if one is available.

        Args:
            client_key: Client address.

        Returns:
            True if the request may proceed.
        """
        with self._lock:
            bucket = self._bucket(client_key)
            if bucket.tokens >= 1.0:
                bucket.tokens -= 1.0
                return True
            return False

    def get_remaining(self, client_key: str) -> int:
        """Whole tokens left for a client."""
        with self._lock:
            return int(self._bucket(client_key).tokens)

    def _bucket(self, client_key: str) -> RateLimitBucket:
        """Fetch a refilled bucket, creating a full one on first use."""
        bucket = self._buckets.get(client_key)
        if bucket is None:
            bucket = self._buckets[client_key] = RateLimitBucket(
                tokens=float(self._max_requests), last_update=time.monotonic()
            )
            return bucket
        now = time.monotonic()
        bucket.tokens = min(
            self._max_requests,
            bucket.tokens + (now - bucket.last_update) * self._refill_rate,
        )
        bucket.last_update = now
        return bucket


# =============================================================================
# DEPENDENCY
# =============================================================================


def get_rate_limiter(request: Request) -> RateLimiter:
    """Limiter attached to the running application."""
    return request.app.state.rate_limiter


def check_rate_limit(
    request: Request,
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> None:
    """FastAPI dependency to enforce rate limiting.

    Raises:
        HTTPException: 429 if rate limit exceeded.
    """
    if not limiter.is_allowed(extract_client_ip(request)):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded. Try again later.",
            headers={"Retry-After": "60"},
        )


def extract_client_ip(request: Request) -> str:
    """Client address, honouring X-Forwarded-For behind a proxy."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"
