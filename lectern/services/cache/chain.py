# lectern/services/cache/chain.py
"""
Ordered cache tier chain.

Tiers are tried strictly in order (fastest first). A hit at a slower
tier is back-filled into every faster tier so the next read is served
from memory. Stale entries (TTL expired or schema tag mismatch) are
treated exactly like misses.

Usage:
    chain = CacheTierChain([MemoryTier(), LocalFileTier(path), shared_tier])

    await chain.set("verses:...:GEN:1", payload, ttl=3600, use_shared=True)
    payload = await chain.get("verses:...:GEN:1", use_shared=True)
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from .tiers import CacheEntry, CacheTier, StorageTierUnavailable

logger = logging.getLogger(__name__)


class CacheTierChain:
    """Read-through cache storage across several tiers."""

    def __init__(
        self,
        tiers: List[CacheTier],
        schema_version: str = "1",
        clock: Callable[[], float] = time.time,
    ):
        self.tiers = list(tiers)
        self.schema_version = schema_version
        self.clock = clock
        self._stats = {
            "hits": {tier.name: 0 for tier in self.tiers},
            "misses": 0,
            "stale": 0,
            "writes": 0,
            "tier_errors": {tier.name: 0 for tier in self.tiers},
        }

    def _active_tiers(self, use_shared: bool) -> List[CacheTier]:
        # Shared tiers are opt-in so user-entered content never leaks across sessions
        return [t for t in self.tiers if use_shared or not t.shared]

    def _tier_failed(self, tier: CacheTier, error: Exception, action: str):
        self._stats["tier_errors"][tier.name] = self._stats["tier_errors"].get(tier.name, 0) + 1
        logger.warning(f"Skipping cache tier {tier.name} on {action}: {error}")

    async def get_entry(self, key: str, use_shared: bool = False) -> Optional[CacheEntry]:
        """
        Get the freshest valid entry for key, back-filling faster tiers.

        Returns:
            CacheEntry, or None on a miss in every tier
        """
        tiers = self._active_tiers(use_shared)
        now = self.clock()

        for index, tier in enumerate(tiers):
            try:
                entry = await tier.read(key)
            except StorageTierUnavailable as e:
                self._tier_failed(tier, e, "read")
                continue

            if entry is None:
                continue

            if not entry.is_fresh(now, self.schema_version):
                self._stats["stale"] += 1
                logger.debug(f"Stale cache entry for {key} in {tier.name}")
                continue

            self._stats["hits"][tier.name] = self._stats["hits"].get(tier.name, 0) + 1
            logger.debug(f"Cache hit for {key} in {tier.name}")

            if index > 0:
                await self._backfill(tiers[:index], key, entry)
            return entry

        self._stats["misses"] += 1
        logger.debug(f"Cache miss for {key}")
        return None

    async def get(self, key: str, use_shared: bool = False) -> Optional[Any]:
        """Get the cached payload for key, or None on a miss."""
        entry = await self.get_entry(key, use_shared=use_shared)
        return entry.data if entry is not None else None

    async def _backfill(self, tiers: List[CacheTier], key: str, entry: CacheEntry):
        # The original write time is kept so a back-fill never extends lifetime
        for tier in tiers:
            try:
                await tier.write(key, entry)
            except StorageTierUnavailable as e:
                self._tier_failed(tier, e, "back-fill")

    async def set(self, key: str, value: Any, ttl: float, use_shared: bool = False) -> CacheEntry:
        """Write value into every active tier."""
        entry = CacheEntry(
            data=value,
            timestamp=self.clock(),
            version=self.schema_version,
            ttl=ttl,
        )
        for tier in self._active_tiers(use_shared):
            try:
                await tier.write(key, entry)
            except StorageTierUnavailable as e:
                self._tier_failed(tier, e, "write")

        self._stats["writes"] += 1
        return entry

    async def clear(self) -> int:
        """
        Wipe the process-local tiers.

        The shared tier is left alone since other processes may use it.
        """
        cleared = 0
        for tier in self.tiers:
            if tier.shared:
                continue
            try:
                cleared += await tier.clear()
            except StorageTierUnavailable as e:
                self._tier_failed(tier, e, "clear")

        logger.info(f"Cleared {cleared} cache entries")
        return cleared

    def stats(self) -> Dict[str, Any]:
        """Return hit/miss counters and tier availability."""
        return {
            "hits": dict(self._stats["hits"]),
            "misses": self._stats["misses"],
            "stale": self._stats["stale"],
            "writes": self._stats["writes"],
            "tier_errors": dict(self._stats["tier_errors"]),
            "tiers": [
                {"name": tier.name, "shared": tier.shared, "enabled": tier.enabled}
                for tier in self.tiers
            ],
            "schema_version": self.schema_version,
        }
