"""Cache Service Interface

Memoizes expensive reads keyed by (operation, group, user, period) and
invalidates them by tag whenever ledger state changes. One mutation usually
touches several cached reads (group summary, period list, period detail),
so invalidation is always by tag, never by key.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Type, TypeVar
from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)

PERIODS_TAG = "periods"


def group_tag(group_id: str) -> str:
    return f"group:{group_id}"


def period_tag(period_id: str) -> str:
    return f"period:{period_id}"


def transaction_tag(transaction_id: str) -> str:
    return f"transaction:{transaction_id}"


def cache_key(
    operation: str,
    group_id: Optional[str],
    user_id: Optional[str] = None,
    period_id: Optional[str] = None,
    *extra: Any,
) -> str:
    """
    Build a composite cache key

    Example:
        cache_key("group_balance_summary", "g1", "u1", "p1", True)
        -> "group_balance_summary:g1:u1:p1:True"
    """
    parts = [operation, group_id or "-", user_id or "-", period_id or "-"]
    parts.extend(str(part) for part in extra)
    return ":".join(parts)


class CacheService(ABC):
    """
    Abstract cache with tag-based invalidation

    Values are JSON-compatible structures; callers go through
    ``get_or_load`` to store and rehydrate Pydantic DTOs.

    Every invalidation bumps a per-tag generation. ``get_or_load`` records
    the generations of its tags before loading and the store is skipped when
    any of them moved, so a load that raced a mutation is never cached.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on miss or expiry"""
        pass

    @abstractmethod
    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: int,
        tags: Iterable[str] = (),
        generations: Optional[Dict[str, int]] = None,
    ) -> None:
        """Store ``value``; with ``generations``, only if no tag was invalidated since"""
        pass

    @abstractmethod
    async def invalidate_tags(self, *tags: str) -> None:
        """Drop every entry stored under any of the given tags"""
        pass

    async def tag_generations(self, tags: Iterable[str]) -> Dict[str, int]:
        return {}

    async def get_or_load(
        self,
        key: str,
        model: Type[T],
        loader: Callable[[], Awaitable[T]],
        tags: Iterable[str],
        ttl_seconds: int,
    ) -> T:
        cached = await self.get(key)
        if cached is not None:
            return model.model_validate(cached)

        tags = list(tags)
        generations = await self.tag_generations(tags)
        value = await loader()
        await self.set(key, value.model_dump(mode="json"), ttl_seconds, tags, generations=generations)
        return value


async def invalidate_period_cache(cache: CacheService, group_id: str, *period_ids: Optional[str]) -> None:
    """Invalidate reads affected by a period mutation"""
    tags = [group_tag(group_id), PERIODS_TAG]
    tags.extend(period_tag(period_id) for period_id in period_ids if period_id)
    await cache.invalidate_tags(*tags)


async def invalidate_transaction_cache(
    cache: CacheService,
    group_id: str,
    period_id: Optional[str],
    transaction_id: str,
) -> None:
    """Invalidate reads affected by a transaction mutation"""
    tags = [group_tag(group_id), transaction_tag(transaction_id)]
    if period_id:
        tags.append(period_tag(period_id))
    await cache.invalidate_tags(*tags)
