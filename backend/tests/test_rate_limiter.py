"""Tests for provider request budgets."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from vesseltrack.ais.adapters.datalastic import DatalasticAdapter
from vesseltrack.ais.adapters.fixture import FixtureAdapter
from vesseltrack.cache.redis_client import RedisClient
from vesseltrack.errors import RateLimiterUnavailableError
from vesseltrack.ratelimit import (
    InMemoryRateLimiter,
    ProviderThrottle,
    RateLimitRule,
    RedisRateLimiter,
)
from vesseltrack.tenancy import require_tenant


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestInMemoryRateLimiter:
    @pytest.mark.asyncio
    async def test_concurrent_acquires_never_overshoot(self):
        limiter = InMemoryRateLimiter()
        rule = RateLimitRule(limit=80, window_seconds=60)

        decisions = await asyncio.gather(*(limiter.hit("ais:x:t", rule) for _ in range(81)))

        assert sum(d.allowed for d in decisions) == 80
        denied = [d for d in decisions if not d.allowed]
        assert len(denied) == 1
        assert denied[0].retry_after >= 1

    @pytest.mark.asyncio
    async def test_window_resets(self):
        clock = FakeClock()
        limiter = InMemoryRateLimiter(clock=clock)
        rule = RateLimitRule(limit=1, window_seconds=60)

        assert (await limiter.hit("k", rule)).allowed
        denied = await limiter.hit("k", rule)
        assert not denied.allowed
        assert denied.retry_after == 60

        clock.now += 30
        assert (await limiter.hit("k", rule)).retry_after == 30

        clock.now += 30
        assert (await limiter.hit("k", rule)).allowed

    @pytest.mark.asyncio
    async def test_keys_are_independent(self):
        limiter = InMemoryRateLimiter()
        rule = RateLimitRule(limit=1)
        assert (await limiter.hit("a", rule)).allowed
        assert (await limiter.hit("b", rule)).allowed
        assert not (await limiter.hit("a", rule)).allowed

    @pytest.mark.asyncio
    async def test_remaining_counts_down(self):
        limiter = InMemoryRateLimiter()
        rule = RateLimitRule(limit=2, window_seconds=10)
        first = await limiter.hit("k", rule)
        second = await limiter.hit("k", rule)
        third = await limiter.hit("k", rule)
        assert (first.remaining, second.remaining) == (1, 0)
        assert not third.allowed


class TestRedisRateLimiter:
    @pytest.mark.asyncio
    async def test_denies_past_limit_with_ttl(self):
        client = AsyncMock(spec=RedisClient)
        client.incr_window.side_effect = [(1, 60), (2, 58), (3, 45)]
        limiter = RedisRateLimiter(client)
        rule = RateLimitRule(limit=2, window_seconds=60)

        first = await limiter.hit("ais:datalastic:t", rule)
        second = await limiter.hit("ais:datalastic:t", rule)
        third = await limiter.hit("ais:datalastic:t", rule)

        assert first.allowed and first.remaining == 1
        assert second.allowed and second.remaining == 0
        assert not third.allowed
        assert third.retry_after == 45
        client.incr_window.assert_awaited_with("ais:datalastic:t", 60)

    @pytest.mark.asyncio
    async def test_redis_outage_is_reported(self):
        client = AsyncMock(spec=RedisClient)
        client.incr_window.side_effect = RedisConnectionError("Connection refused")
        limiter = RedisRateLimiter(client)

        with pytest.raises(RateLimiterUnavailableError) as exc_info:
            await limiter.hit("ais:datalastic:t", RateLimitRule(limit=2, window_seconds=60))

        assert "ais:datalastic:t" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, RedisConnectionError)


class TestProviderThrottle:
    def test_key_format(self):
        assert ProviderThrottle.key(require_tenant("acme"), "datalastic") == "ais:datalastic:acme"

    @pytest.mark.asyncio
    async def test_budget_is_per_tenant(self):
        throttle = ProviderThrottle(
            InMemoryRateLimiter(), default_rule=RateLimitRule(limit=1, window_seconds=60)
        )
        provider = FixtureAdapter()
        a, b = require_tenant("a"), require_tenant("b")

        assert (await throttle.try_acquire(a, provider)).allowed
        assert not (await throttle.try_acquire(a, provider)).allowed
        assert (await throttle.try_acquire(b, provider)).allowed

    @pytest.mark.asyncio
    async def test_provider_specific_rule(self):
        throttle = ProviderThrottle(
            InMemoryRateLimiter(),
            rules={"fixture": RateLimitRule(limit=2)},
            default_rule=RateLimitRule(limit=1),
        )
        tenant = require_tenant("a")
        provider = FixtureAdapter()
        results = [await throttle.try_acquire(tenant, provider) for _ in range(3)]
        assert [r.allowed for r in results] == [True, True, False]

    @pytest.mark.asyncio
    async def test_unconfigured_provider_does_not_consume_budget(self):
        limiter = AsyncMock(spec=InMemoryRateLimiter)
        throttle = ProviderThrottle(limiter)
        provider = DatalasticAdapter({"api_key": ""})

        decision = await throttle.try_acquire(require_tenant("a"), provider)

        assert decision.allowed
        limiter.hit.assert_not_awaited()
