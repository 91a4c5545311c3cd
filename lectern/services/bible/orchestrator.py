# lectern/services/bible/orchestrator.py
"""
Read-through access to books, chapters and verses.

Every read resolves the version, derives a cache key and walks the
cache tier chain. On a full miss the upstream API is called, the raw
payload is normalized and the result is written back into every tier.
Failed fetches are never cached.

Usage:
    orchestrator = build_orchestrator()

    result = await orchestrator.get_verses("kjv", "Genesis", 1)
    if result.found:
        for verse in result.value:
            print(verse.number, verse.text)
    elif result.status is ReadStatus.UNAVAILABLE:
        print(result.error.to_dict())
"""

import asyncio
import logging
import sqlite3
from typing import Any, Callable, Optional

from lectern.core import config
from lectern.services.cache import (
    CacheTierChain,
    DocumentStore,
    LocalFileTier,
    MemoryTier,
    SharedDocumentTier,
)

from .books import BOOKS, Book, derive_book_code
from .errors import (
    ChapterNotFound,
    InvalidUpstreamShape,
    UpstreamUnavailable,
    VerseNotFound,
)
from .keys import Kind, derive_key
from .models import SUMMARY, Chapter, ChapterContext, ReadResult, Verse
from .normalizer import (
    normalize_book_list,
    normalize_chapter_list,
    normalize_verse,
    normalize_verse_list,
    order_verses,
)
from .references import parse_reference
from .summaries import SummaryStore
from .upstream import UpstreamFetcher
from .versions import Version, VersionResolver

logger = logging.getLogger(__name__)

UPSTREAM_ERRORS = (UpstreamUnavailable, InvalidUpstreamShape)


class ReadThroughOrchestrator:
    """
    Facade over the cache chain, upstream fetcher and normalizer.

    All reads return a ReadResult: ok with a value, not_found with an
    empty value (a legitimate state for some versions/ranges), or
    unavailable carrying the upstream error.
    """

    def __init__(
        self,
        chain: CacheTierChain,
        fetcher: UpstreamFetcher,
        resolver: Optional[VersionResolver] = None,
        summaries: Optional[SummaryStore] = None,
        use_shared: bool = True,
        text_ttl: Optional[float] = None,
        meta_ttl: Optional[float] = None,
    ):
        self.chain = chain
        self.fetcher = fetcher
        self.resolver = resolver or VersionResolver()
        self.summaries = summaries
        self.use_shared = use_shared
        self.text_ttl = text_ttl if text_ttl is not None else config.CACHE_TTL_TEXT_SECONDS
        self.meta_ttl = meta_ttl if meta_ttl is not None else config.CACHE_TTL_META_SECONDS

    def ttl_for(self, kind: Kind) -> float:
        return self.meta_ttl if kind.is_metadata else self.text_ttl

    # -------------------------------------------------------------------------
    # Cache helpers
    # -------------------------------------------------------------------------

    async def _cached(self, key: str, decode: Callable[[Any], Any]) -> Optional[Any]:
        data = await self.chain.get(key, use_shared=self.use_shared)
        if data is None:
            return None
        try:
            return decode(data)
        except (KeyError, TypeError, ValueError) as e:
            # Same schema tag but an unreadable payload; refetch
            logger.warning(f"Discarding malformed cache payload for {key}: {e}")
            return None

    async def _store(self, kind: Kind, key: str, data: Any):
        await self.chain.set(key, data, self.ttl_for(kind), use_shared=self.use_shared)

    # -------------------------------------------------------------------------
    # Books
    # -------------------------------------------------------------------------

    async def get_books(self, version: str) -> ReadResult[list[Book]]:
        """Books available in a version, in canonical order."""
        version_id = self.resolver.resolve(version)
        key = derive_key(Kind.BOOKS, version_id)

        cached = await self._cached(key, lambda data: [Book.from_dict(b) for b in data])
        if cached is not None:
            return ReadResult.ok(cached, from_cache=True)

        try:
            raw = await self.fetcher.books(version_id)
        except UPSTREAM_ERRORS as e:
            return ReadResult.unavailable(e)

        books = normalize_book_list(raw, fallback=False)
        if not books:
            logger.info(f"No usable books for {version_id}, serving static canon")
            return ReadResult.ok(list(BOOKS))

        await self._store(Kind.BOOKS, key, [b.to_dict() for b in books])
        return ReadResult.ok(books)

    # -------------------------------------------------------------------------
    # Chapters
    # -------------------------------------------------------------------------

    async def _chapters(self, version_id: str, book_code: str) -> ReadResult[list[Chapter]]:
        key = derive_key(Kind.CHAPTERS, version_id, book_code)

        cached = await self._cached(key, lambda data: [Chapter.from_dict(c) for c in data])
        if cached is not None:
            return ReadResult.ok(cached, from_cache=True)

        try:
            raw = await self.fetcher.chapters(version_id, book_code)
        except UPSTREAM_ERRORS as e:
            return ReadResult.unavailable(e)

        chapters = normalize_chapter_list(raw)
        if not chapters:
            return ReadResult.not_found(ChapterNotFound(book_code), value=[])

        await self._store(Kind.CHAPTERS, key, [c.to_dict() for c in chapters])
        return ReadResult.ok(chapters)

    async def get_chapters(self, version: str, book: str) -> ReadResult[list[int]]:
        """
        Chapter numbers of a book, ascending.

        Raises:
            UnknownBook: If book is not one of the 66 canonical books
        """
        book_code = derive_book_code(book)
        version_id = self.resolver.resolve(version)

        result = await self._chapters(version_id, book_code)
        if not result.found:
            return ReadResult(result.status, value=[], error=result.error)
        return ReadResult.ok([c.number for c in result.value], from_cache=result.from_cache)

    # -------------------------------------------------------------------------
    # Verses
    # -------------------------------------------------------------------------

    async def _summary_verse(self, context: ChapterContext) -> Optional[Verse]:
        if self.summaries is None:
            return None
        try:
            text = await self.summaries.get_chapter_summary(context.book, context.chapter)
        except (sqlite3.Error, OSError) as e:
            logger.warning(f"Chapter summary unavailable for {context.book} {context.chapter}: {e}")
            return None
        if not text:
            return None
        return Verse(number=SUMMARY, text=text, reference=context.reference(SUMMARY))

    async def get_verses(
        self,
        version: str,
        book: str,
        chapter: int,
        include_summary: bool = False,
    ) -> ReadResult[list[Verse]]:
        """
        Verses of one chapter, ascending by number.

        Resolves the chapter's upstream id through the (cached) chapter
        list first. A chapter number missing from that list is reported
        as not found without attempting the verse fetch.

        Args:
            version: Version alias or id
            book: Book name or code
            chapter: Chapter number
            include_summary: Lead with the chapter summary entry, if any

        Raises:
            UnknownBook: If book is not one of the 66 canonical books
        """
        book_code = derive_book_code(book)
        version_id = self.resolver.resolve(version)
        chapter = int(chapter)
        context = ChapterContext(version_id, book_code, chapter)
        key = derive_key(Kind.VERSES, version_id, book_code, chapter)

        verses = await self._cached(key, lambda data: [Verse.from_dict(v) for v in data])
        from_cache = verses is not None

        if verses is None:
            chapters = await self._chapters(version_id, book_code)
            if not chapters.found:
                return ReadResult(chapters.status, value=[], error=chapters.error)

            match = next((c for c in chapters.value if c.number == chapter), None)
            if match is None:
                logger.info(f"Chapter {chapter} not in {book_code} ({version_id})")
                return ReadResult.not_found(ChapterNotFound(book_code, chapter), value=[])

            try:
                raw = await self.fetcher.verses(version_id, match.upstream_id)
            except UPSTREAM_ERRORS as e:
                return ReadResult.unavailable(e, value=[])

            verses = normalize_verse_list(raw, context)
            if not all(v.placeholder for v in verses):
                await self._store(Kind.VERSES, key, [v.to_dict() for v in verses])

        if include_summary:
            summary = await self._summary_verse(context)
            if summary is not None:
                verses = [summary] + list(verses)

        return ReadResult.ok(order_verses(verses, include_summary), from_cache=from_cache)

    async def get_verse(self, version: str, book: str, chapter: int, verse: int) -> ReadResult[Verse]:
        """
        A single verse.

        Raises:
            UnknownBook: If book is not one of the 66 canonical books
        """
        book_code = derive_book_code(book)
        version_id = self.resolver.resolve(version)
        chapter, verse = int(chapter), int(verse)
        context = ChapterContext(version_id, book_code, chapter)
        key = derive_key(Kind.VERSE, version_id, book_code, chapter, verse)

        cached = await self._cached(key, Verse.from_dict)
        if cached is not None:
            return ReadResult.ok(cached, from_cache=True)

        try:
            raw = await self.fetcher.verse(version_id, f"{book_code}.{chapter}.{verse}")
        except UPSTREAM_ERRORS as e:
            return ReadResult.unavailable(e)

        normalized = normalize_verse(raw, context)
        if normalized is None:
            return ReadResult.not_found(VerseNotFound(book_code, chapter, verse))

        await self._store(Kind.VERSE, key, normalized.to_dict())
        return ReadResult.ok(normalized)

    # -------------------------------------------------------------------------
    # Generic entry point and compound reads
    # -------------------------------------------------------------------------

    async def get(
        self,
        kind,
        version: str,
        book: Optional[str] = None,
        chapter: Optional[int] = None,
        verse: Optional[int] = None,
        include_summary: bool = False,
    ) -> ReadResult:
        """
        Read any kind of entity.

        Args:
            kind: Kind or its value ("books", "chapters", "verses", "verse")
        """
        kind = Kind(kind) if not isinstance(kind, Kind) else kind

        if kind is Kind.BOOKS:
            return await self.get_books(version)

        if book is None:
            raise ValueError(f"{kind.value} requires a book")
        if kind is Kind.CHAPTERS:
            return await self.get_chapters(version, book)

        if chapter is None:
            raise ValueError(f"{kind.value} requires a chapter")
        if kind is Kind.VERSES:
            return await self.get_verses(version, book, chapter, include_summary=include_summary)

        if verse is None:
            raise ValueError("verse requires a verse number")
        return await self.get_verse(version, book, chapter, verse)

    async def lookup(self, version: str, ref: str) -> ReadResult[list[Verse]]:
        """
        Look up a human reference such as "John 3:16-18" or "Psalm 23".

        Raises:
            ValueError: If ref cannot be parsed (UnknownBook for bad books)
        """
        parsed = parse_reference(ref)
        if parsed is None:
            raise ValueError(f"Could not parse reference: {ref}")

        result = await self.get_verses(version, parsed.book, parsed.chapter)
        if not result.found:
            return result

        selected = [v for v in result.value if parsed.contains(v.number)]
        if not selected:
            return ReadResult.not_found(
                VerseNotFound(parsed.book, parsed.chapter, parsed.verse_start),
                value=[],
            )
        return ReadResult.ok(selected, from_cache=result.from_cache)

    async def chapter_availability(self, version: str, book: str) -> ReadResult[dict[int, bool]]:
        """
        Whether each chapter of a book has real verse text.

        Chapter reads are issued concurrently and joined.
        """
        book_code = derive_book_code(book)
        chapters = await self.get_chapters(version, book_code)
        if not chapters.found:
            return ReadResult(chapters.status, value={}, error=chapters.error)

        results = await asyncio.gather(
            *(self.get_verses(version, book_code, number) for number in chapters.value)
        )

        availability = {}
        for number, result in zip(chapters.value, results):
            availability[number] = result.found and any(not v.placeholder for v in result.value)
        return ReadResult.ok(availability)

    # -------------------------------------------------------------------------
    # Versions and cache management
    # -------------------------------------------------------------------------

    def list_versions(self) -> list[Version]:
        return self.resolver.supported_versions()

    async def clear_cache(self) -> int:
        return await self.chain.clear()

    def cache_stats(self) -> dict:
        return self.chain.stats()


def build_orchestrator(
    cache_path: Optional[str] = None,
    shared_db_path: Optional[str] = None,
    fetcher: Optional[UpstreamFetcher] = None,
) -> ReadThroughOrchestrator:
    """Wire the default tiers, fetcher and summary store from config."""
    store = DocumentStore(shared_db_path or config.SHARED_DB_PATH)
    chain = CacheTierChain(
        [
            MemoryTier(),
            LocalFileTier(cache_path or config.CACHE_PATH, prefix=config.CACHE_PREFIX),
            SharedDocumentTier(store, collection=config.SHARED_CACHE_COLLECTION),
        ],
        schema_version=config.CACHE_SCHEMA_VERSION,
    )
    return ReadThroughOrchestrator(
        chain=chain,
        fetcher=fetcher or UpstreamFetcher(),
        summaries=SummaryStore(store),
        use_shared=config.USE_SHARED_CACHE,
    )
