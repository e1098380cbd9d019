"""Cache Service Implementations

In-process, Redis and no-op backends for the tag-invalidated read cache.
"""

import json
import logging
import time
from typing import Any, Dict, Iterable, Optional, Set, Tuple
from redis import asyncio as aioredis
from redis.exceptions import RedisError, WatchError
from messledger.app.services.cache_service import CacheService

logger = logging.getLogger(__name__)

# Generations only need to outlive the longest in-flight load
GENERATION_TTL_SECONDS = 3600


class InMemoryCacheService(CacheService):
    """
    Process-local cache

    Suitable for a single API process and for tests. Expired entries are
    dropped on read and swept on every write, tag index included;
    invalidation drops every key stored under a tag. Tag generations are
    kept for ``generation_retention`` seconds after their last bump, which
    bounds how long a load may run and still be checked.
    """

    def __init__(self, clock=time.monotonic, generation_retention: float = 600):
        self._clock = clock
        self._generation_retention = generation_retention
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._tags: Dict[str, Set[str]] = {}
        self._key_tags: Dict[str, Set[str]] = {}
        self._generations: Dict[str, Tuple[int, float]] = {}

    def _evict(self, key: str) -> None:
        self._entries.pop(key, None)
        for tag in self._key_tags.pop(key, set()):
            keys = self._tags.get(tag)
            if keys is None:
                continue
            keys.discard(key)
            if not keys:
                del self._tags[tag]

    def _generation(self, tag: str) -> int:
        return self._generations.get(tag, (0, 0.0))[0]

    def _prune(self) -> None:
        now = self._clock()
        for key in [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]:
            self._evict(key)
        stale_before = now - self._generation_retention
        for tag in [tag for tag, (_, bumped_at) in self._generations.items() if bumped_at <= stale_before]:
            del self._generations[tag]

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            self._evict(key)
            return None
        return value

    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: int,
        tags: Iterable[str] = (),
        generations: Optional[Dict[str, int]] = None,
    ) -> None:
        if generations and any(
            self._generation(tag) != generation for tag, generation in generations.items()
        ):
            logger.debug(f"Cache store skipped for {key}: invalidated while loading")
            return

        self._prune()
        self._evict(key)
        self._entries[key] = (value, self._clock() + ttl_seconds)
        tags = set(tags)
        self._key_tags[key] = tags
        for tag in tags:
            self._tags.setdefault(tag, set()).add(key)

    async def invalidate_tags(self, *tags: str) -> None:
        for tag in tags:
            self._generations[tag] = (self._generation(tag) + 1, self._clock())
            for key in list(self._tags.get(tag, ())):
                self._evict(key)

    async def tag_generations(self, tags: Iterable[str]) -> Dict[str, int]:
        return {tag: self._generation(tag) for tag in tags}

    def size(self) -> int:
        return len(self._entries)


class RedisCacheService(CacheService):
    """
    Redis-backed cache shared by every API process and the worker

    Values are JSON strings under ``<prefix>:<key>`` with a TTL. Each tag is
    a Redis set of the keys stored under it. Redis failures degrade to a
    cache miss on read; invalidation failures are logged.
    """

    def __init__(self, redis_url: str, prefix: str = "messledger", client: Optional[aioredis.Redis] = None):
        self.prefix = prefix
        self.client = client or aioredis.from_url(redis_url, decode_responses=True)

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def _tag(self, tag: str) -> str:
        return f"{self.prefix}:tag:{tag}"

    def _generation_key(self, tag: str) -> str:
        return f"{self.prefix}:gen:{tag}"

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self.client.get(self._key(key))
        except RedisError as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None
        return json.loads(raw) if raw is not None else None

    async def tag_generations(self, tags: Iterable[str]) -> Dict[str, int]:
        tags = list(tags)
        if not tags:
            return {}
        try:
            values = await self.client.mget([self._generation_key(tag) for tag in tags])
        except RedisError as e:
            logger.warning(f"Cache generation read failed for tags {tags}: {e}")
            return {}
        return {tag: int(value or 0) for tag, value in zip(tags, values)}

    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: int,
        tags: Iterable[str] = (),
        generations: Optional[Dict[str, int]] = None,
    ) -> None:
        tags = list(tags)
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                if generations:
                    # WATCH makes the write fail if a generation moves before EXEC
                    generation_keys = [self._generation_key(tag) for tag in generations]
                    await pipe.watch(*generation_keys)
                    current = await pipe.mget(generation_keys)
                    if [int(v or 0) for v in current] != list(generations.values()):
                        logger.debug(f"Cache store skipped for {key}: invalidated while loading")
                        return
                    pipe.multi()
                pipe.set(self._key(key), json.dumps(value), ex=ttl_seconds)
                for tag in tags:
                    pipe.sadd(self._tag(tag), self._key(key))
                    # Tag sets outlive their entries by a margin, never forever
                    pipe.expire(self._tag(tag), ttl_seconds * 10)
                await pipe.execute()
        except WatchError:
            logger.debug(f"Cache store skipped for {key}: invalidated during write")
        except RedisError as e:
            logger.warning(f"Cache write failed for {key}: {e}")

    async def invalidate_tags(self, *tags: str) -> None:
        try:
            for tag in tags:
                tag_key = self._tag(tag)
                generation_key = self._generation_key(tag)
                await self.client.incr(generation_key)
                await self.client.expire(generation_key, GENERATION_TTL_SECONDS)
                keys = await self.client.smembers(tag_key)
                if keys:
                    await self.client.delete(*keys)
                await self.client.delete(tag_key)
        except RedisError as e:
            logger.error(f"Cache invalidation failed for tags {tags}: {e}")

    async def close(self) -> None:
        await self.client.aclose()


class NullCacheService(CacheService):
    """Cache that never stores anything"""

    async def get(self, key: str) -> Optional[Any]:
        return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: int,
        tags: Iterable[str] = (),
        generations: Optional[Dict[str, int]] = None,
    ) -> None:
        return None

    async def invalidate_tags(self, *tags: str) -> None:
        return None


def create_cache_service(backend: str, redis_url: Optional[str] = None, prefix: str = "messledger") -> CacheService:
    """
    Factory function to create the configured cache backend

    Args:
        backend: "memory", "redis" or "none"
        redis_url: Required for the redis backend
        prefix: Key prefix for the redis backend

    Returns:
        Configured CacheService
    """
    backend = (backend or "none").lower()

    if backend == "memory":
        return InMemoryCacheService()

    if backend == "redis":
        if not redis_url:
            raise ValueError("REDIS_URL is required for the redis cache backend")
        return RedisCacheService(redis_url, prefix=prefix)

    if backend == "none":
        return NullCacheService()

    raise ValueError(f"Unknown cache backend: {backend}")
