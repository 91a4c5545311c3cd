# lectern/services/bible/errors.py
"""
Error types for scripture text access.

Upstream failures carry enough detail (status code, truncated body) for
callers to tell a misconfigured API key apart from a transient outage.
Not-found conditions are reported through ReadResult, not raised.
"""

from typing import Optional

from lectern.services.cache.tiers import StorageTierUnavailable  # noqa: F401

BODY_PREVIEW_LIMIT = 500


def truncate_body(body: Optional[str], limit: int = BODY_PREVIEW_LIMIT) -> str:
    """Trim a response body for logs and error payloads."""
    if not body:
        return ""
    body = body.strip()
    if len(body) <= limit:
        return body
    return body[:limit] + "..."


class BibleError(Exception):
    """Base exception for scripture text errors."""
    pass


class UpstreamUnavailable(BibleError):
    """Raised when the text API cannot be reached or answers non-2xx."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = "", path: str = ""):
        super().__init__(message)
        self.status = status
        self.body = truncate_body(body)
        self.path = path

    @property
    def is_auth_error(self) -> bool:
        """True when the upstream rejected our credentials."""
        return self.status in (401, 403)

    def to_dict(self) -> dict:
        return {
            "error": "upstream_forbidden" if self.is_auth_error else "upstream_unavailable",
            "detail": str(self),
            "upstream_status": self.status,
            "upstream_body": self.body,
        }


class InvalidUpstreamShape(BibleError):
    """Raised when a 2xx response body is not parseable JSON."""

    def __init__(self, message: str, body: str = "", path: str = ""):
        super().__init__(message)
        self.status = None
        self.body = truncate_body(body)
        self.path = path

    def to_dict(self) -> dict:
        return {
            "error": "invalid_upstream_shape",
            "detail": str(self),
            "upstream_body": self.body,
        }


class UnknownBook(BibleError, ValueError):
    """Raised when a book name is outside the 66-book canon."""

    def __init__(self, name: str):
        super().__init__(f"Unknown book: {name!r}")
        self.name = name


class ChapterNotFound(BibleError):
    """The normalized chapter list has no entry for the request."""

    def __init__(self, book: str, chapter: Optional[int] = None):
        if chapter is None:
            super().__init__(f"No chapters available for {book}")
        else:
            super().__init__(f"Chapter {chapter} not found in {book}")
        self.book = book
        self.chapter = chapter


class VerseNotFound(BibleError):
    """The normalized data has no entry for the requested verse."""

    def __init__(self, book: str, chapter: int, verse: int):
        super().__init__(f"Verse {book} {chapter}:{verse} not found")
        self.book = book
        self.chapter = chapter
        self.verse = verse
