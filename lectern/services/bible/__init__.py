# lectern/services/bible/__init__.py
"""
Scripture text services for Lectern.

This package provides:
- ReadThroughOrchestrator: Cached, normalized access to books/chapters/verses
- VersionResolver: Version aliases to upstream ids
- derive_book_code / derive_key: Book name validation and cache keys
- UpstreamFetcher: Raw access to the upstream text API
- Normalizer functions: Raw payloads to canonical records
- SummaryStore: Chapter summaries in the shared document store
- parse_reference: Parse human-readable references
"""

from .errors import (
    BibleError,
    UpstreamUnavailable,
    InvalidUpstreamShape,
    UnknownBook,
    ChapterNotFound,
    VerseNotFound,
    StorageTierUnavailable,
)
from .versions import Version, VersionResolver, BIBLE_VERSIONS, DEFAULT_VERSION
from .books import Book, BOOKS, derive_book_code
from .keys import Kind, derive_key
from .models import (
    SUMMARY,
    Chapter,
    ChapterContext,
    ReadResult,
    ReadStatus,
    Verse,
)
from .normalizer import (
    normalize_verse,
    normalize_verse_list,
    normalize_chapter_list,
    normalize_book_list,
    order_verses,
)
from .references import ParsedReference, parse_reference
from .summaries import SummaryStore
from .upstream import UpstreamFetcher
from .orchestrator import ReadThroughOrchestrator, build_orchestrator

__all__ = [
    # Orchestration (primary interface)
    "ReadThroughOrchestrator",
    "build_orchestrator",
    "ReadResult",
    "ReadStatus",
    # Errors
    "BibleError",
    "UpstreamUnavailable",
    "InvalidUpstreamShape",
    "UnknownBook",
    "ChapterNotFound",
    "VerseNotFound",
    "StorageTierUnavailable",
    # Versions and books
    "Version",
    "VersionResolver",
    "BIBLE_VERSIONS",
    "DEFAULT_VERSION",
    "Book",
    "BOOKS",
    "derive_book_code",
    # Keys
    "Kind",
    "derive_key",
    # Records
    "SUMMARY",
    "Chapter",
    "ChapterContext",
    "Verse",
    # Normalization
    "normalize_verse",
    "normalize_verse_list",
    "normalize_chapter_list",
    "normalize_book_list",
    "order_verses",
    # References
    "ParsedReference",
    "parse_reference",
    # Collaborators
    "SummaryStore",
    "UpstreamFetcher",
]
