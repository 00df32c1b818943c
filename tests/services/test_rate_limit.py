"""
Unit tests for rate limiting service.

Covers the memory and Redis backends, key formatting and the per-IP
FastAPI dependency.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from vault.core.exceptions.types import RateLimitExceededException
from vault.core.services.rate_limit import (
    MemoryBackend,
    RateLimiter,
    RedisBackend,
    format_rate_limit_key,
    rate_limit_by_ip,
)


# ============================================================================
# Tests for MemoryBackend
# ============================================================================


class TestMemoryBackend:

    async def test_counts_down_then_blocks(self):
        backend = MemoryBackend()

        results = [await backend.check("k", limit=3, window=60) for _ in range(4)]

        assert [r.allowed for r in results] == [True, True, True, False]
        assert [r.remaining for r in results] == [2, 1, 0, 0]
        assert results[-1].retry_after >= 1

    async def test_get_remaining_does_not_count(self):
        backend = MemoryBackend()
        await backend.check("k", limit=3, window=60)

        assert await backend.get_remaining("k", limit=3, window=60) == 2
        assert await backend.get_remaining("k", limit=3, window=60) == 2
        assert await backend.get_remaining("other", limit=3, window=60) == 3

    async def test_reset(self):
        backend = MemoryBackend()
        await backend.check("k", limit=1, window=60)

        await backend.reset("k")

        assert (await backend.check("k", limit=1, window=60)).allowed is True

    async def test_window_expiry(self):
        backend = MemoryBackend()
        await backend.check("k", limit=1, window=0)

        assert (await backend.check("k", limit=1, window=60)).allowed is True

    async def test_retry_after(self):
        backend = MemoryBackend()
        assert await backend.retry_after("k", window=60) == 0

        await backend.check("k", limit=1, window=60)

        assert 0 < await backend.retry_after("k", window=60) <= 60


# ============================================================================
# Tests for RedisBackend
# ============================================================================


class TestRedisBackend:

    async def test_first_hit_sets_expiry(self):
        with patch("vault.core.services.rate_limit.RedisService") as redis:
            redis.incr = AsyncMock(return_value=1)
            redis.expire = AsyncMock(return_value=True)
            redis.ttl = AsyncMock(return_value=60)

            result = await RedisBackend().check("k", limit=5, window=60)

        assert result.allowed is True
        assert result.remaining == 4
        redis.expire.assert_awaited_once_with("k", 60)

    async def test_over_limit(self):
        with patch("vault.core.services.rate_limit.RedisService") as redis:
            redis.incr = AsyncMock(return_value=6)
            redis.expire = AsyncMock()
            redis.ttl = AsyncMock(return_value=30)

            result = await RedisBackend().check("k", limit=5, window=60)

        assert result.allowed is False
        assert result.retry_after == 30
        redis.expire.assert_not_awaited()

    async def test_fails_open_without_redis(self):
        with patch("vault.core.services.rate_limit.RedisService") as redis:
            redis.incr = AsyncMock(return_value=None)

            result = await RedisBackend().check("k", limit=5, window=60)

        assert result.allowed is True

    async def test_get_remaining(self):
        with patch("vault.core.services.rate_limit.RedisService") as redis:
            redis.get = AsyncMock(return_value=b"4")

            assert await RedisBackend().get_remaining("k", limit=5, window=60) == 1


# ============================================================================
# Tests for RateLimiter and helpers
# ============================================================================


class TestRateLimiter:

    async def test_instances_share_counters(self):
        await RateLimiter(backend="memory").check("shared", limit=1, window=60)

        result = await RateLimiter(backend="memory").check("shared", limit=1, window=60)

        assert result.allowed is False

    def test_key_format(self):
        assert (
            format_rate_limit_key("account", "abc", "step-up:document_download")
            == "rate_limit:account:abc:step-up:document_download"
        )


class TestRateLimitByIp:

    def _request(self, host: str = "10.0.0.1", path: str = "/auth/login"):
        request = MagicMock()
        request.client.host = host
        request.url.path = path
        return request

    async def test_raises_when_exceeded(self):
        dependency = rate_limit_by_ip(limit=2, window=60, backend="memory")

        await dependency(self._request())
        await dependency(self._request())
        with pytest.raises(RateLimitExceededException) as exc_info:
            await dependency(self._request())

        assert exc_info.value.retry_after >= 1

    async def test_counts_per_ip(self):
        dependency = rate_limit_by_ip(limit=1, window=60, backend="memory")

        await dependency(self._request(host="10.0.0.1"))
        result = await dependency(self._request(host="10.0.0.2"))

        assert result.allowed is True
