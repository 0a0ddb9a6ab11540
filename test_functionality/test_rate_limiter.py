"""Fixed-window rate limiter."""
import pytest

from application.services.rate_limiter import RateLimiter
from domain.exceptions import RateLimitExceeded


@pytest.fixture
def limiter(kv, clock) -> RateLimiter:
    return RateLimiter(kv, window_seconds=60, max_per_window=3, clock=clock)


@pytest.mark.asyncio
async def test_counts_down_remaining(limiter):
    assert await limiter.hit("1.2.3.4") == 2
    assert await limiter.hit("1.2.3.4") == 1
    assert await limiter.hit("1.2.3.4") == 0


@pytest.mark.asyncio
async def test_over_budget_raises_with_retry_after(limiter, clock):
    for _ in range(3):
        await limiter.hit("1.2.3.4")
    clock.advance(20)

    with pytest.raises(RateLimitExceeded) as exc_info:
        await limiter.hit("1.2.3.4")
    assert exc_info.value.retry_after == 40


@pytest.mark.asyncio
async def test_window_resets_after_expiry(limiter, clock):
    for _ in range(3):
        await limiter.hit("1.2.3.4")
    clock.advance(61)
    assert await limiter.hit("1.2.3.4") == 2


@pytest.mark.asyncio
async def test_keys_have_independent_buckets(limiter, kv):
    for _ in range(3):
        await limiter.hit("1.2.3.4")
    assert await limiter.hit("5.6.7.8") == 2
    assert await kv.get("ratelimit:1.2.3.4") == {"count": 3, "resetAt": 1_700_000_060_000}
