"""
Redis service for shared rate-limit and lockout counters.

This module provides a singleton Redis client for the async counter
operations the rate limiter needs when several app instances share state.
"""

from __future__ import annotations

from redis.asyncio import Redis

from vault.core.config import redis_logger, settings


class RedisService:
    """
    Singleton Redis service for async Redis operations.

    Every operation degrades to a logged no-op (``None``/``False``) when the
    client is missing or Redis errors, so callers can choose to fail open.

    Example:
        >>> await RedisService.init("redis://localhost:6379/0")
        >>> await RedisService.incr("key")
        >>> await RedisService.aclose()
    """

    _client: Redis | None = None
    _url: str = settings.REDIS_URL

    @classmethod
    async def init(cls, url: str | None = None) -> None:
        """
        Initialize the Redis service with the given URL.

        If a client already exists, it is closed before creating a new one.

        Args:
            url: The Redis connection URL. If None, uses settings.REDIS_URL.
        """
        if url is not None:
            cls._url = url

        await cls.aclose()

        try:
            cls._client = Redis.from_url(
                cls._url,
                encoding="utf-8",
                decode_responses=False,
            )
            redis_logger.info("Redis client initialized")
        except Exception as e:
            redis_logger.error(f"Failed to initialize Redis client: {str(e)}")
            raise

    @classmethod
    async def aclose(cls) -> None:
        """Close the Redis client. Safe to call when not initialized."""
        if cls._client is not None:
            try:
                await cls._client.aclose()
                redis_logger.info("Redis client closed successfully")
            except Exception as e:
                redis_logger.warning(f"Error closing Redis client: {str(e)}")
            finally:
                cls._client = None

    @classmethod
    def is_connected(cls) -> bool:
        return cls._client is not None

    @classmethod
    async def ping(cls) -> bool:
        """
        Ping the Redis server to check connectivity.

        Returns:
            bool: True if ping succeeds, False otherwise.
        """
        if cls._client is None:
            redis_logger.warning("Redis ping attempted but client not initialized")
            return False

        try:
            result = await cls._client.ping()  # type: ignore[misc]
            return bool(result)
        except Exception as e:
            redis_logger.error(f"Redis ping failed: {str(e)}")
            return False

    @classmethod
    async def get(cls, key: str) -> str | None:
        """
        Get a value from Redis by key.

        Returns:
            The value as a string if found, None otherwise.
        """
        if cls._client is None:
            redis_logger.warning(
                f"Redis get({key}) attempted but client not initialized"
            )
            return None

        try:
            value = await cls._client.get(key)
            if value is not None:
                return value.decode("utf-8") if isinstance(value, bytes) else value
            return None
        except Exception as e:
            redis_logger.error(f"Redis get({key}) failed: {str(e)}")
            return None

    @classmethod
    async def incr(cls, key: str) -> int | None:
        """
        Increment a counter, creating it at 1 if missing.

        Returns:
            The new value after increment, or None on failure.
        """
        if cls._client is None:
            redis_logger.warning(
                f"Redis incr({key}) attempted but client not initialized"
            )
            return None

        try:
            value = await cls._client.incr(key)
            redis_logger.debug(f"Redis incr({key}) new value: {value}")
            return value
        except Exception as e:
            redis_logger.error(f"Redis incr({key}) failed: {str(e)}")
            return None

    @classmethod
    async def expire(cls, key: str, ttl: int) -> bool:
        if cls._client is None:
            redis_logger.warning(
                f"Redis expire({key}) attempted but client not initialized"
            )
            return False

        try:
            result = await cls._client.expire(key, ttl)
            return bool(result)
        except Exception as e:
            redis_logger.error(f"Redis expire({key}) failed: {str(e)}")
            return False

    @classmethod
    async def ttl(cls, key: str) -> int | None:
        """
        Get the remaining time-to-live of a key.

        Returns:
            TTL in seconds, -1 if no expiry, -2 if key doesn't exist, None on error.
        """
        if cls._client is None:
            redis_logger.warning(
                f"Redis ttl({key}) attempted but client not initialized"
            )
            return None

        try:
            return await cls._client.ttl(key)
        except Exception as e:
            redis_logger.error(f"Redis ttl({key}) failed: {str(e)}")
            return None

    @classmethod
    async def delete(cls, key: str) -> bool:
        """
        Delete a key from Redis.

        Returns:
            bool: True if key was deleted, False if key didn't exist or error.
        """
        if cls._client is None:
            redis_logger.warning(
                f"Redis delete({key}) attempted but client not initialized"
            )
            return False

        try:
            result = await cls._client.delete(key)
            return result > 0
        except Exception as e:
            redis_logger.error(f"Redis delete({key}) failed: {str(e)}")
            return False


__all__ = ["RedisService"]
