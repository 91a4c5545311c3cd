# lectern/services/bible/summaries.py
"""
Chapter summaries kept in the shared document store.

Summaries are user-entered commentary, so they are read straight from
the document store and never pass through the cache tiers.
"""

import asyncio
import logging
import time
from typing import Optional

from lectern.core import config
from lectern.services.cache.documents import DocumentStore

logger = logging.getLogger(__name__)


class SummaryStore:
    """Read and write chapter summaries."""

    def __init__(self, store: DocumentStore, collection: str = None):
        self.store = store
        self.collection = collection or config.CHAPTER_SUMMARIES_COLLECTION

    @staticmethod
    def _doc_id(book: str, chapter: int) -> str:
        return f"{book}_{chapter}"

    async def get_chapter_summary(self, book: str, chapter: int) -> Optional[str]:
        """Return the summary text, or None when there is none."""
        doc = await asyncio.to_thread(self.store.get, self.collection, self._doc_id(book, chapter))
        if not doc:
            return None
        content = doc.get("content")
        if not isinstance(content, str) or not content.strip():
            return None
        return content.strip()

    async def save_chapter_summary(self, book: str, chapter: int, content: str) -> None:
        doc_id = self._doc_id(book, chapter)
        await asyncio.to_thread(
            self.store.put,
            self.collection,
            doc_id,
            {"bookId": book, "chapterNumber": chapter, "content": content, "updatedAt": time.time()},
        )
        logger.info(f"Saved chapter summary {doc_id}")
