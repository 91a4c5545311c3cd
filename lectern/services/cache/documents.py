"""
Document Store

Durable shared store addressed by collection name + document id.

Backs the shared cache tier and chapter summaries. Each write replaces
the whole document in a single statement, so readers never observe a
partially written document.
"""

import json
import logging
from typing import Any, Dict, Optional

from lectern.utils.db import get_db

logger = logging.getLogger(__name__)


class DocumentStore:
    """JSON documents in SQLite, keyed by (collection, doc_id)."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path
        self._initialized = False

    def _connect(self):
        conn = get_db(self.db_path)
        if not self._initialized:
            conn.execute(
                """CREATE TABLE IF NOT EXISTS documents (
                       collection TEXT NOT NULL,
                       doc_id TEXT NOT NULL,
                       body TEXT NOT NULL,
                       updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                       PRIMARY KEY (collection, doc_id)
                   )"""
            )
            conn.commit()
            self._initialized = True
        return conn

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Get a document, or None if it does not exist or is corrupt."""
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT body FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, doc_id),
            ).fetchone()
        finally:
            conn.close()

        if row is None:
            return None

        try:
            return json.loads(row["body"])
        except json.JSONDecodeError as e:
            logger.warning(f"Corrupt document {collection}/{doc_id}: {e}")
            return None

    def put(self, collection: str, doc_id: str, body: Dict[str, Any]) -> None:
        """Create or replace a document."""
        payload = json.dumps(body, ensure_ascii=False)
        conn = self._connect()
        try:
            conn.execute(
                """INSERT OR REPLACE INTO documents (collection, doc_id, body, updated_at)
                   VALUES (?, ?, ?, CURRENT_TIMESTAMP)""",
                (collection, doc_id, payload),
            )
            conn.commit()
        finally:
            conn.close()

    def count(self, collection: str) -> int:
        conn = self._connect()
        try:
            return conn.execute(
                "SELECT COUNT(*) FROM documents WHERE collection = ?",
                (collection,),
            ).fetchone()[0]
        finally:
            conn.close()
