# autocompleted/services/redis_cache.py
# Responsibility: Redis-backed result cache, shared by several worker processes.

from typing import Optional

import redis
from loguru import logger

from autocompleted.config.settings import settings


class RedisResultCache:
    """
    Stores serialized autocomplete responses in Redis with a fixed TTL.
    Same get/put contract as MemoryResultCache. Capacity is left to the
    Redis server's maxmemory policy.
    """

    def __init__(
        self,
        client: Optional[redis.Redis] = None,
        ttl_seconds: int = settings.CACHE.TTL_SECONDS,
        key_prefix: str = settings.CACHE.KEY_PREFIX,
    ):
        """
        Args:
            client: Redis client. Built from CACHE_REDIS_URL when omitted.
                decode_responses=True ensures we get strings back, not bytes.
            ttl_seconds (int): Entry lifetime from insertion.
            key_prefix (str): Namespace for cache keys.
        """
        self.client = client or redis.from_url(settings.CACHE.REDIS_URL, decode_responses=True)
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    def get(self, key: str) -> Optional[str]:
        """
        Retrieves a cached body.

        Returns:
            Optional[str]: The body, or None on a miss. Redis failures are
            logged and treated as a miss.
        """
        try:
            return self.client.get(self._key(key))
        except redis.RedisError as e:
            logger.warning("[Redis] Cache fetch error: {}", e)
            return None

    def put(self, key: str, body: str) -> None:
        """Stores a body with the configured TTL. Failures are logged, not raised."""
        try:
            self.client.setex(self._key(key), self.ttl_seconds, body)
        except redis.RedisError as e:
            logger.warning("[Redis] Cache write error: {}", e)

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"
