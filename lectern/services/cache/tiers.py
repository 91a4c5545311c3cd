# lectern/services/cache/tiers.py
"""
Cache tiers.

Each tier stores CacheEntry records under derived keys. Tiers do not
judge freshness; the chain does that at read time. A tier whose medium
cannot be used raises StorageTierUnavailable, which the chain recovers.

    MemoryTier          process memory (dict)
    LocalFileTier       JSON files in a local cache directory
    SharedDocumentTier  shared SQLite document store
"""

import asyncio
import json
import logging
import os
import re
import sqlite3
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .documents import DocumentStore

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9.\-]")


class CacheError(Exception):
    """Base exception for cache tier errors."""
    pass


class StorageTierUnavailable(CacheError):
    """Raised by a cache tier whose storage medium cannot be used."""

    def __init__(self, tier: str, reason: str = ""):
        message = f"Cache tier {tier} unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.tier = tier


def sanitize_key(key: str) -> str:
    """
    Make a derived key safe for file names and document ids.

    Derived key components only hold alphanumerics, dots and hyphens, so
    replacing everything else with "_" keeps distinct keys distinct.
    """
    return _UNSAFE_KEY_CHARS.sub("_", key)


@dataclass
class CacheEntry:
    """
    A cached payload with its write time and schema tag.

    Serialized as {data, timestamp, version, ttl} in durable tiers.
    """
    data: Any
    timestamp: float
    version: str
    ttl: float

    def is_fresh(self, now: float, schema_version: str) -> bool:
        """Valid iff the schema tag matches and the entry is younger than its TTL."""
        if self.version != schema_version:
            return False
        return (now - self.timestamp) < self.ttl

    def to_document(self) -> Dict[str, Any]:
        return {
            "data": self.data,
            "timestamp": self.timestamp,
            "version": self.version,
            "ttl": self.ttl,
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> Optional["CacheEntry"]:
        """Build an entry from a stored document; None if malformed."""
        try:
            return cls(
                data=doc["data"],
                timestamp=float(doc["timestamp"]),
                version=str(doc.get("version", "")),
                ttl=float(doc.get("ttl", 0)),
            )
        except (KeyError, TypeError, ValueError):
            return None


class CacheTier(ABC):
    """Base class for a storage tier."""

    name = "tier"
    # Shared tiers are only used by callers that opt in
    shared = False

    def __init__(self):
        self.enabled = True

    def _check_available(self):
        if not self.enabled:
            raise StorageTierUnavailable(self.name, "disabled")

    async def read(self, key: str) -> Optional[CacheEntry]:
        self._check_available()
        return await self._read(key)

    async def write(self, key: str, entry: CacheEntry) -> None:
        self._check_available()
        await self._write(key, entry)

    async def clear(self) -> int:
        self._check_available()
        return await self._clear()

    @abstractmethod
    async def _read(self, key: str) -> Optional[CacheEntry]:
        ...

    @abstractmethod
    async def _write(self, key: str, entry: CacheEntry) -> None:
        ...

    @abstractmethod
    async def _clear(self) -> int:
        ...


class MemoryTier(CacheTier):
    """Process-local associative store."""

    name = "memory"

    def __init__(self):
        super().__init__()
        self._entries: Dict[str, CacheEntry] = {}

    async def _read(self, key):
        return self._entries.get(key)

    async def _write(self, key, entry):
        self._entries[key] = entry

    async def _clear(self):
        cleared = len(self._entries)
        self._entries.clear()
        return cleared

    def __contains__(self, key):
        return key in self._entries

    def __len__(self):
        return len(self._entries)


class LocalFileTier(CacheTier):
    """
    Client-local durable store: one JSON file per key.

    Files are namespaced with a fixed prefix so clear() only removes
    our own entries. If the directory cannot be created the tier is
    unavailable for its whole lifetime.
    """

    name = "local"

    def __init__(self, cache_dir, prefix: str = "bible_"):
        super().__init__()
        self.cache_dir = Path(cache_dir)
        self.prefix = prefix
        self._unavailable_reason = None
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self._unavailable_reason = str(e)
            logger.warning(f"Local cache directory {self.cache_dir} unusable: {e}")

    def _check_available(self):
        super()._check_available()
        if self._unavailable_reason:
            raise StorageTierUnavailable(self.name, self._unavailable_reason)

    def _path(self, key: str) -> Path:
        return self.cache_dir / f"{self.prefix}{sanitize_key(key)}.json"

    def _read_file(self, path: Path) -> Optional[CacheEntry]:
        try:
            with open(path, encoding="utf-8") as f:
                doc = json.load(f)
        except FileNotFoundError:
            return None
        except ValueError as e:
            logger.warning(f"Failed to read cache file {path}: {e}")
            return None
        except OSError as e:
            raise StorageTierUnavailable(self.name, str(e))

        if not isinstance(doc, dict):
            return None
        return CacheEntry.from_document(doc)

    def _write_file(self, path: Path, entry: CacheEntry):
        tmp_path = path.with_suffix(".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(entry.to_document(), f, ensure_ascii=False)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageTierUnavailable(self.name, str(e))

    def _clear_files(self) -> int:
        cleared = 0
        try:
            for cache_file in self.cache_dir.glob(f"{self.prefix}*.json"):
                cache_file.unlink()
                cleared += 1
        except OSError as e:
            raise StorageTierUnavailable(self.name, str(e))
        return cleared

    async def _read(self, key):
        return await asyncio.to_thread(self._read_file, self._path(key))

    async def _write(self, key, entry):
        await asyncio.to_thread(self._write_file, self._path(key), entry)

    async def _clear(self):
        return await asyncio.to_thread(self._clear_files)


class SharedDocumentTier(CacheTier):
    """
    Shared durable store, possibly used by several processes.

    Never wiped by clear(): other processes may depend on it.
    """

    name = "shared"
    shared = True

    def __init__(self, store: DocumentStore, collection: str = "bible-cache"):
        super().__init__()
        self.store = store
        self.collection = collection

    def _get_doc(self, key):
        try:
            return self.store.get(self.collection, sanitize_key(key))
        except (sqlite3.Error, OSError) as e:
            raise StorageTierUnavailable(self.name, str(e))

    def _put_doc(self, key, entry):
        try:
            self.store.put(self.collection, sanitize_key(key), entry.to_document())
        except (sqlite3.Error, OSError, TypeError, ValueError) as e:
            raise StorageTierUnavailable(self.name, str(e))

    async def _read(self, key):
        doc = await asyncio.to_thread(self._get_doc, key)
        if not isinstance(doc, dict):
            return None
        return CacheEntry.from_document(doc)

    async def _write(self, key, entry):
        await asyncio.to_thread(self._put_doc, key, entry)

    async def _clear(self):
        logger.debug("Shared cache tier is not cleared")
        return 0
