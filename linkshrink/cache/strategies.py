"""
Cache strategies using Strategy Pattern.
Backends for the redirect lookup cache (Redis, In-Memory, Null).
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional, Tuple


logger = logging.getLogger(__name__)


class CacheStrategy(ABC):
    """
    Abstract base class for cache strategies.
    
    The cache is an optimization only: every method swallows backend
    errors and reports a miss/failure, so a dead cache never breaks a request.
    
    All methods are async because cache operations involve I/O (network for Redis).
    """
    
    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Get value from cache.
        
        Returns:
            Cached value or None if not found
        """
        pass
    
    @abstractmethod
    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        """
        Set value in cache with TTL (Time To Live) in seconds.
        
        Returns:
            True if successful, False otherwise
        """
        pass
    
    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Delete key from cache.
        
        Returns:
            True if deleted, False if key didn't exist
        """
        pass
    
    async def delete_many(self, keys: Iterable[str]) -> int:
        """Delete several keys, return how many were removed"""
        removed = 0
        for key in keys:
            if await self.delete(key):
                removed += 1
        return removed
    
    @abstractmethod
    async def clear(self) -> bool:
        """Clear all cache entries"""
        pass


class RedisCache(CacheStrategy):
    """
    Redis cache implementation.
    
    Shared between app processes and honours TTL natively (SETEX).
    """
    
    def __init__(self, redis_client):
        """
        Args:
            redis_client: Redis client instance (redis.Redis)
        """
        self.redis = redis_client
    
    async def get(self, key: str) -> Optional[str]:
        try:
            value = self.redis.get(key)
            return value.decode("utf-8") if value else None
        except Exception as e:
            logger.warning("Redis get error for %s: %s", key, e)
            return None
    
    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        try:
            return bool(self.redis.setex(key, ttl, value))
        except Exception as e:
            logger.warning("Redis set error for %s: %s", key, e)
            return False
    
    async def delete(self, key: str) -> bool:
        try:
            return bool(self.redis.delete(key))
        except Exception as e:
            logger.warning("Redis delete error for %s: %s", key, e)
            return False
    
    async def delete_many(self, keys: Iterable[str]) -> int:
        keys = list(keys)
        if not keys:
            return 0
        try:
            return int(self.redis.delete(*keys))
        except Exception as e:
            logger.warning("Redis bulk delete error: %s", e)
            return 0
    
    async def clear(self) -> bool:
        try:
            self.redis.flushdb()
            return True
        except Exception as e:
            logger.warning("Redis clear error: %s", e)
            return False


class InMemoryCache(CacheStrategy):
    """
    Per-process dict cache with lazy TTL expiry.
    
    Entries are dropped when read after their deadline; nothing sweeps
    them in the background. Good for development and single-process deploys.
    """
    
    def __init__(self, clock=time.monotonic):
        self._cache: Dict[str, Tuple[str, float]] = {}
        self._clock = clock
    
    async def get(self, key: str) -> Optional[str]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        value, deadline = entry
        if self._clock() >= deadline:
            del self._cache[key]
            return None
        return value
    
    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        self._cache[key] = (value, self._clock() + ttl)
        return True
    
    async def delete(self, key: str) -> bool:
        return self._cache.pop(key, None) is not None
    
    async def clear(self) -> bool:
        self._cache.clear()
        return True


class NullCache(CacheStrategy):
    """
    Null Object Pattern - cache that does nothing.
    
    Used in tests and when caching is switched off (cache_backend=null).
    """
    
    async def get(self, key: str) -> Optional[str]:
        return None
    
    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        return True
    
    async def delete(self, key: str) -> bool:
        return False
    
    async def clear(self) -> bool:
        return True
