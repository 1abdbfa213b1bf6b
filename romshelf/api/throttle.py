"""
Throttling for IGDB API requests

Combines a FIFO concurrency limiter with a sliding window token bucket,
plus adaptive concurrency reduction on repeated 429 responses.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Deque, Optional

logger = logging.getLogger(__name__)


@dataclass
class RateLimit:
    """Rate limit configuration"""
    calls: int = 4              # Tokens in the bucket
    window_seconds: float = 1.0 # Time for a consumed token to return


class TokenBucket:
    """
    Token bucket with per-token refill

    Each consumed token returns to the bucket exactly window_seconds after
    it was taken, so no window of that length ever sees more than `calls`
    acquisitions. Waiters sleep until the oldest token returns rather than
    polling, and are served in arrival order.
    """

    def __init__(
        self,
        limit: RateLimit,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.limit = limit
        self._clock = clock
        self._sleep = sleep
        self._history: Deque[float] = deque()
        self._lock = asyncio.Lock()

    def _expire(self, now: float) -> None:
        window_start = now - self.limit.window_seconds
        while self._history and self._history[0] <= window_start:
            self._history.popleft()

    @property
    def available(self) -> int:
        """Tokens that could be taken right now"""
        self._expire(self._clock())
        return self.limit.calls - len(self._history)

    async def acquire(self) -> float:
        """
        Take one token, waiting for it if the bucket is empty

        Returns:
            Seconds waited (0 if a token was available)
        """
        waited = 0.0
        async with self._lock:
            while True:
                now = self._clock()
                self._expire(now)

                if len(self._history) < self.limit.calls:
                    self._history.append(now)
                    return waited

                wait_time = self._history[0] + self.limit.window_seconds - now
                logger.debug(f"Token bucket empty: waiting {wait_time:.3f}s")
                await self._sleep(wait_time)
                waited += wait_time


class ConcurrencyLimiter:
    """
    FIFO limiter for in-flight requests

    Unlike asyncio.Semaphore the limit can be lowered while slots are held;
    holders keep their slot and new acquisitions wait until the active
    count falls below the new limit.
    """

    def __init__(self, limit: int):
        self._limit = max(1, limit)
        self._active = 0
        self._waiters: Deque[asyncio.Future] = deque()

    @property
    def limit(self) -> int:
        return self._limit

    @limit.setter
    def limit(self, value: int) -> None:
        self._limit = max(1, value)
        self._wake()

    @property
    def active(self) -> int:
        return self._active

    @property
    def waiting(self) -> int:
        return sum(1 for fut in self._waiters if not fut.done())

    async def acquire(self) -> None:
        if self._active < self._limit and not self.waiting:
            self._active += 1
            return

        fut = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        try:
            await fut
        except asyncio.CancelledError:
            # Slot was handed over just before cancellation
            if fut.done() and not fut.cancelled():
                self.release()
            raise

    def release(self) -> None:
        self._active -= 1
        self._wake()

    def _wake(self) -> None:
        while self._waiters and self._active < self._limit:
            fut = self._waiters.popleft()
            if fut.done():
                continue
            self._active += 1
            fut.set_result(None)

    async def __aenter__(self) -> 'ConcurrencyLimiter':
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()


class ThrottleManager:
    """
    Concurrency and rate limiting for IGDB requests

    Features:
    - At most max_concurrent requests in flight, queued FIFO
    - Token bucket (4 tokens per second by default), one token per attempt
    - Adaptive halving of the concurrency limit on repeated 429 responses

    Example:
        throttle = ThrottleManager(max_concurrent=2, adaptive=True)

        async with throttle.slot():
            await throttle.wait_for_token()
            response = await client.post(...)
            if response.status_code == 429:
                throttle.handle_rate_limit()
    """

    # Two 429s closer together than this reduce concurrency
    RATE_LIMIT_COOLDOWN_SECONDS = 30.0

    def __init__(
        self,
        max_concurrent: int = 2,
        rate_limit: Optional[RateLimit] = None,
        adaptive: bool = False,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize throttle manager

        Args:
            max_concurrent: Maximum concurrent API requests (minimum 1)
            rate_limit: Token bucket configuration (default: 4 per second)
            adaptive: Halve concurrency when 429s repeat within the cooldown
            clock: Time source for the token bucket and 429 tracking
        """
        self.rate_limit = rate_limit or RateLimit()
        self.adaptive = adaptive
        self.bucket = TokenBucket(self.rate_limit, clock=clock)
        self.limiter = ConcurrencyLimiter(max_concurrent)
        self._clock = clock
        self.last_rate_limit: Optional[float] = None
        self.rate_limit_hits = 0

        logger.debug(
            "Throttle manager initialized with max %s concurrent requests, %s requests per %ss",
            self.limiter.limit,
            self.rate_limit.calls,
            self.rate_limit.window_seconds
        )

    @property
    def max_concurrent(self) -> int:
        return self.limiter.limit

    def slot(self) -> ConcurrencyLimiter:
        """Async context manager holding one concurrency slot"""
        return self.limiter

    async def wait_for_token(self) -> float:
        """
        Wait for a rate limit token

        Returns:
            Seconds waited (0 if no wait needed)
        """
        return await self.bucket.acquire()

    def handle_rate_limit(self) -> None:
        """
        Record a 429 response

        With adaptive mode enabled, a 429 arriving within the cooldown of
        the previous one halves the concurrency limit (floor, minimum 1).
        The limit is never raised again during a run.
        """
        self.rate_limit_hits += 1
        if not self.adaptive:
            return

        now = self._clock()
        previous = self.last_rate_limit
        self.last_rate_limit = now

        if previous is not None and now - previous < self.RATE_LIMIT_COOLDOWN_SECONDS:
            old_limit = self.limiter.limit
            self.limiter.limit = max(1, old_limit // 2)
            logger.warning(
                f"Repeated rate limiting: reducing concurrency from "
                f"{old_limit} to {self.limiter.limit}"
            )

    def get_stats(self) -> dict:
        """
        Get throttle statistics

        Returns:
            dict with max_concurrent, active, waiting, tokens_available, rate_limit_hits
        """
        return {
            'max_concurrent': self.limiter.limit,
            'active': self.limiter.active,
            'waiting': self.limiter.waiting,
            'tokens_available': self.bucket.available,
            'rate_limit_hits': self.rate_limit_hits,
        }
