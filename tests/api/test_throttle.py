"""
Tests for the token bucket, FIFO concurrency limiter and adaptive throttling.

Most cases use an injected clock; the slow test runs on real timers.
"""

import asyncio
import time

import pytest

from romshelf.api.throttle import ConcurrencyLimiter, RateLimit, ThrottleManager, TokenBucket


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.mark.unit
@pytest.mark.asyncio
async def test_token_bucket_hands_out_capacity_without_waiting():
    bucket = TokenBucket(RateLimit(calls=4, window_seconds=60))

    waits = [await bucket.acquire() for _ in range(4)]

    assert waits == [0.0, 0.0, 0.0, 0.0]
    assert bucket.available == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_token_bucket_sleeps_until_oldest_token_returns():
    clock = FakeClock()
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)
        clock.now += seconds

    bucket = TokenBucket(RateLimit(calls=2, window_seconds=1.0), clock=clock, sleep=fake_sleep)

    await bucket.acquire()
    clock.now = 0.25
    await bucket.acquire()
    clock.now = 0.5
    waited = await bucket.acquire()

    # Single notify-at-refill sleep, no polling
    assert sleeps == [pytest.approx(0.5)]
    assert waited == pytest.approx(0.5)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_token_bucket_limits_starts_per_window():
    window = 0.2
    bucket = TokenBucket(RateLimit(calls=4, window_seconds=window))
    starts = []

    async def worker():
        await bucket.acquire()
        starts.append(time.monotonic())

    await asyncio.gather(*(worker() for _ in range(10)))

    starts.sort()
    for i in range(len(starts) - 4):
        # The 5th start after any start is at least a window later
        assert starts[i + 4] - starts[i] >= window - 0.01


@pytest.mark.unit
@pytest.mark.asyncio
async def test_concurrency_limiter_is_fifo():
    limiter = ConcurrencyLimiter(1)
    order = []

    await limiter.acquire()

    async def waiter(name):
        async with limiter:
            order.append(name)

    tasks = [asyncio.create_task(waiter(n)) for n in ("a", "b", "c")]
    await asyncio.sleep(0)
    assert limiter.waiting == 3

    limiter.release()
    await asyncio.gather(*tasks)

    assert order == ["a", "b", "c"]
    assert limiter.active == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_concurrency_limiter_lowered_limit_applies_to_new_acquisitions():
    limiter = ConcurrencyLimiter(2)
    await limiter.acquire()
    await limiter.acquire()

    limiter.limit = 1
    waiter = asyncio.create_task(limiter.acquire())

    limiter.release()
    await asyncio.sleep(0)
    # One slot still held, at the new limit of 1
    assert not waiter.done()

    limiter.release()
    await asyncio.wait_for(waiter, timeout=1)
    assert limiter.active == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_leak_slot():
    limiter = ConcurrencyLimiter(1)
    await limiter.acquire()

    waiter = asyncio.create_task(limiter.acquire())
    await asyncio.sleep(0)
    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter

    limiter.release()
    assert limiter.active == 0
    await asyncio.wait_for(limiter.acquire(), timeout=1)
    assert limiter.active == 1


@pytest.mark.unit
def test_minimum_concurrency_is_one():
    assert ThrottleManager(max_concurrent=0).max_concurrent == 1


@pytest.mark.unit
def test_repeated_429_within_cooldown_halves_concurrency():
    clock = FakeClock(100.0)
    throttle = ThrottleManager(max_concurrent=4, adaptive=True, clock=clock)

    throttle.handle_rate_limit()
    assert throttle.max_concurrent == 4

    clock.now += 10
    throttle.handle_rate_limit()
    assert throttle.max_concurrent == 2

    clock.now += 10
    throttle.handle_rate_limit()
    assert throttle.max_concurrent == 1

    clock.now += 10
    throttle.handle_rate_limit()
    assert throttle.max_concurrent == 1


@pytest.mark.unit
def test_429s_further_apart_than_cooldown_keep_concurrency():
    clock = FakeClock(100.0)
    throttle = ThrottleManager(max_concurrent=4, adaptive=True, clock=clock)

    throttle.handle_rate_limit()
    clock.now += 31
    throttle.handle_rate_limit()

    assert throttle.max_concurrent == 4
    assert throttle.last_rate_limit == 131.0


@pytest.mark.unit
def test_non_adaptive_throttle_never_reduces_concurrency():
    clock = FakeClock()
    throttle = ThrottleManager(max_concurrent=4, adaptive=False, clock=clock)

    for _ in range(3):
        throttle.handle_rate_limit()

    assert throttle.max_concurrent == 4
    assert throttle.get_stats()["rate_limit_hits"] == 3


@pytest.mark.integration
@pytest.mark.asyncio
@pytest.mark.slow
async def test_ten_requests_respect_rate_and_concurrency():
    throttle = ThrottleManager(max_concurrent=2)
    starts = []
    in_flight = 0
    peak = 0

    async def request():
        nonlocal in_flight, peak
        async with throttle.slot():
            await throttle.wait_for_token()
            starts.append(time.monotonic())
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.05)
            in_flight -= 1

    await asyncio.gather(*(request() for _ in range(10)))

    assert peak <= 2
    starts.sort()
    for i in range(len(starts) - 4):
        assert starts[i + 4] - starts[i] >= 1.0 - 0.01


@pytest.mark.unit
@pytest.mark.asyncio
async def test_injected_clock_drives_token_refill():
    clock = FakeClock()
    throttle = ThrottleManager(max_concurrent=2, clock=clock)

    for _ in range(4):
        assert await throttle.wait_for_token() == 0.0
    assert throttle.get_stats()['tokens_available'] == 0

    clock.now += 1.0
    assert throttle.get_stats()['tokens_available'] == 4
