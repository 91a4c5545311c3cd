"""
Cache Services

Multi-tier read-through cache storage for scripture text:
process memory, a client-local file store and a shared document store.
"""

from .tiers import (
    CacheEntry,
    CacheError,
    CacheTier,
    MemoryTier,
    LocalFileTier,
    SharedDocumentTier,
    StorageTierUnavailable,
    sanitize_key,
)
from .documents import DocumentStore
from .chain import CacheTierChain

__all__ = [
    "CacheEntry",
    "CacheError",
    "CacheTier",
    "CacheTierChain",
    "DocumentStore",
    "LocalFileTier",
    "MemoryTier",
    "SharedDocumentTier",
    "StorageTierUnavailable",
    "sanitize_key",
]
