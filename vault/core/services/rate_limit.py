"""
Rate limiting service with configurable backends.

This module provides fixed-window counters backed by process memory or
Redis. They drive the per-IP FastAPI dependency on the auth endpoints and
the failed-attempt lockout on step-up verification.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Literal

from fastapi import Request

from vault.core.config import rate_limit_logger, settings
from vault.core.exceptions.types import RateLimitExceededException
from vault.core.services.redis_service import RedisService


@dataclass
class RateLimitResult:
    """
    Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed.
        remaining: Number of remaining requests in the current window.
        limit: The maximum number of requests allowed.
        reset_at: When the rate limit window resets.
        retry_after: Seconds until the client can retry (only if not allowed).
    """

    allowed: bool
    remaining: int
    limit: int
    reset_at: datetime
    retry_after: int | None = None


class RateLimitBackend(ABC):
    """
    Abstract base class for rate limit backends.

    Implementations must provide methods for checking rate limits,
    resetting keys, and getting remaining request counts.
    """

    @abstractmethod
    async def check(self, key: str, limit: int, window: int) -> RateLimitResult:
        """
        Count one hit against ``key`` and report whether it is allowed.

        Args:
            key: The rate limit key (e.g., "rate_limit:ip:10.0.0.1:/auth/login").
            limit: Maximum number of hits allowed in the window.
            window: Time window in seconds.
        """

    @abstractmethod
    async def reset(self, key: str) -> None:
        """Forget every hit recorded for ``key``."""

    @abstractmethod
    async def get_remaining(self, key: str, limit: int, window: int) -> int:
        """Hits still allowed for ``key`` in the current window, without counting one."""

    @abstractmethod
    async def retry_after(self, key: str, window: int) -> int:
        """Seconds until the current window for ``key`` closes."""


class MemoryBackend(RateLimitBackend):
    """
    In-memory rate limit backend using a dictionary.

    Suitable for single-instance deployments or development. Data is lost on
    restart and is not shared between processes; use RedisBackend for that.
    """

    def __init__(self):
        self._store: dict[str, tuple[int, datetime]] = {}

    async def check(self, key: str, limit: int, window: int) -> RateLimitResult:
        now = datetime.now(timezone.utc)

        if key in self._store:
            count, reset_at = self._store[key]

            if now >= reset_at:
                reset_at = datetime.fromtimestamp(
                    now.timestamp() + window, tz=timezone.utc
                )
                self._store[key] = (1, reset_at)
                rate_limit_logger.debug(f"Rate limit window reset for key: {key}")
                return RateLimitResult(
                    allowed=True,
                    remaining=limit - 1,
                    limit=limit,
                    reset_at=reset_at,
                )

            if count >= limit:
                retry_after = int((reset_at - now).total_seconds())
                rate_limit_logger.warning(
                    f"Rate limit exceeded for key: {key}, retry after: {retry_after}s"
                )
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    limit=limit,
                    reset_at=reset_at,
                    retry_after=max(1, retry_after),
                )

            self._store[key] = (count + 1, reset_at)
            remaining = limit - count - 1
            rate_limit_logger.debug(
                f"Rate limit check passed for key: {key}, remaining: {remaining}"
            )
            return RateLimitResult(
                allowed=True,
                remaining=remaining,
                limit=limit,
                reset_at=reset_at,
            )

        reset_at = datetime.fromtimestamp(now.timestamp() + window, tz=timezone.utc)
        self._store[key] = (1, reset_at)
        rate_limit_logger.debug(f"New rate limit entry created for key: {key}")
        return RateLimitResult(
            allowed=True,
            remaining=limit - 1,
            limit=limit,
            reset_at=reset_at,
        )

    async def reset(self, key: str) -> None:
        if key in self._store:
            del self._store[key]
            rate_limit_logger.debug(f"Rate limit reset for key: {key}")

    async def get_remaining(self, key: str, limit: int, window: int) -> int:
        if key not in self._store:
            return limit

        count, reset_at = self._store[key]
        if datetime.now(timezone.utc) >= reset_at:
            return limit

        return max(0, limit - count)

    async def retry_after(self, key: str, window: int) -> int:
        if key not in self._store:
            return 0
        _, reset_at = self._store[key]
        return max(0, int((reset_at - datetime.now(timezone.utc)).total_seconds()))

    def clear(self) -> None:
        self._store.clear()


class RedisBackend(RateLimitBackend):
    """
    Redis-based rate limit backend.

    Shares counters between instances using INCR with an expiry set on the
    first hit. Redis errors fail open.
    """

    async def check(self, key: str, limit: int, window: int) -> RateLimitResult:
        now = datetime.now(timezone.utc)

        count = await RedisService.incr(key)

        if count is None:
            rate_limit_logger.warning(
                f"Redis error during rate limit check for key: {key}, allowing request"
            )
            return RateLimitResult(
                allowed=True,
                remaining=limit - 1,
                limit=limit,
                reset_at=datetime.fromtimestamp(
                    now.timestamp() + window, tz=timezone.utc
                ),
            )

        if count == 1:
            await RedisService.expire(key, window)

        ttl = await RedisService.ttl(key)
        if ttl is None or ttl < 0:
            ttl = window

        reset_at = datetime.fromtimestamp(now.timestamp() + ttl, tz=timezone.utc)

        if count > limit:
            rate_limit_logger.warning(
                f"Rate limit exceeded for key: {key}, count: {count}, retry after: {ttl}s"
            )
            return RateLimitResult(
                allowed=False,
                remaining=0,
                limit=limit,
                reset_at=reset_at,
                retry_after=max(1, ttl),
            )

        remaining = limit - count
        rate_limit_logger.debug(
            f"Rate limit check passed for key: {key}, remaining: {remaining}"
        )
        return RateLimitResult(
            allowed=True,
            remaining=remaining,
            limit=limit,
            reset_at=reset_at,
        )

    async def reset(self, key: str) -> None:
        await RedisService.delete(key)
        rate_limit_logger.debug(f"Rate limit reset for key: {key}")

    async def get_remaining(self, key: str, limit: int, window: int) -> int:
        value = await RedisService.get(key)
        if value is None:
            return limit

        try:
            return max(0, limit - int(value))
        except ValueError:
            return limit

    async def retry_after(self, key: str, window: int) -> int:
        ttl = await RedisService.ttl(key)
        if ttl is None or ttl < 0:
            return 0
        return ttl


# One backend per kind for the whole process, so counters survive between requests
_backends: dict[str, RateLimitBackend] = {
    "memory": MemoryBackend(),
    "redis": RedisBackend(),
}


def reset_memory_backend() -> None:
    """Drop every in-memory counter. Used by tests and `manage.py`."""
    backend = _backends["memory"]
    if isinstance(backend, MemoryBackend):
        backend.clear()


class RateLimiter:
    """
    Rate limiter with configurable backend.

    Args:
        backend: The backend to use ("memory" or "redis").
                 If None, uses settings.RATE_LIMIT_BACKEND.

    Example:
        >>> limiter = RateLimiter(backend="memory")
        >>> result = await limiter.check("my_key", limit=10, window=60)
        >>> if not result.allowed:
        ...     raise RateLimitExceededException(retry_after=result.retry_after)
    """

    def __init__(self, backend: Literal["memory", "redis"] | None = None):
        if backend is None:
            backend = settings.RATE_LIMIT_BACKEND

        self._backend: RateLimitBackend = _backends.get(backend, _backends["memory"])

    async def check(self, key: str, limit: int, window: int) -> RateLimitResult:
        return await self._backend.check(key, limit, window)

    async def reset(self, key: str) -> None:
        await self._backend.reset(key)

    async def get_remaining(self, key: str, limit: int, window: int) -> int:
        return await self._backend.get_remaining(key, limit, window)

    async def retry_after(self, key: str, window: int) -> int:
        return await self._backend.retry_after(key, window)


def format_rate_limit_key(
    key_type: Literal["ip", "account"],
    identifier: str,
    endpoint: str,
) -> str:
    """
    Format a rate limit key with consistent structure.

    Example:
        >>> format_rate_limit_key("ip", "192.168.1.1", "/auth/login")
        'rate_limit:ip:192.168.1.1:/auth/login'
    """
    return f"rate_limit:{key_type}:{identifier}:{endpoint}"


def rate_limit_by_ip(
    limit: int | None = None,
    window: int | None = None,
    backend: Literal["memory", "redis"] | None = None,
) -> Callable:
    """
    Create a FastAPI dependency for IP-based rate limiting.

    Args:
        limit: Maximum requests allowed. Defaults to settings.RATE_LIMIT_DEFAULT_REQUESTS.
        window: Time window in seconds. Defaults to settings.RATE_LIMIT_DEFAULT_WINDOW.
        backend: Backend type. Defaults to settings.RATE_LIMIT_BACKEND.

    Returns:
        A FastAPI dependency function.

    Example:
        >>> @router.post("/login")
        >>> async def login(
        ...     _: RateLimitResult = Depends(rate_limit_by_ip(limit=10, window=60))
        ... ):
        ...     ...
    """
    _limit = limit if limit is not None else settings.RATE_LIMIT_DEFAULT_REQUESTS
    _window = window if window is not None else settings.RATE_LIMIT_DEFAULT_WINDOW

    async def dependency(request: Request) -> RateLimitResult:
        limiter = RateLimiter(backend=backend)
        client_ip = request.client.host if request.client else "unknown"
        key = format_rate_limit_key("ip", client_ip, request.url.path)

        result = await limiter.check(key, _limit, _window)

        if not result.allowed:
            raise RateLimitExceededException(
                message=f"Rate limit exceeded. Try again in {result.retry_after} seconds.",
                retry_after=result.retry_after,
            )

        return result

    return dependency


__all__ = [
    "RateLimitResult",
    "RateLimitBackend",
    "MemoryBackend",
    "RedisBackend",
    "RateLimiter",
    "format_rate_limit_key",
    "rate_limit_by_ip",
    "reset_memory_backend",
]
