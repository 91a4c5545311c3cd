# lectern/services/bible/references.py
"""
Parsing of human-typed references for the lookup endpoint.

Accepted shapes:
- "Genesis 1:1", "gen. 1:1"
- "1 John 3:16", "1John 3:16", "I John 3:16"
- "Genesis 1:1-3" (hyphen, en or em dash)
- "Psalm 23", a whole chapter

Book names resolve through derive_book_code, so the parsed book is
always an upstream code and unknown books raise UnknownBook.
"""

import re
from dataclasses import dataclass
from typing import Optional

from .books import BOOKS_BY_CODE, derive_book_code


@dataclass
class ParsedReference:
    """
    A reference narrowed to one chapter of one canonical book.

    Attributes:
        book: Upstream book code (e.g., "GEN", "1JN")
        chapter: Chapter number
        verse_start: Starting verse (None for chapter-only references)
        verse_end: Last verse of a range, if any
        original: Input after whitespace cleanup
    """
    book: str
    chapter: int
    verse_start: Optional[int] = None
    verse_end: Optional[int] = None
    original: str = ""

    @property
    def is_chapter(self) -> bool:
        return self.verse_start is None

    @property
    def normalized(self) -> str:
        """Return normalized reference string, e.g. "1 John 3:16-18"."""
        name = BOOKS_BY_CODE[self.book].display_name
        if self.is_chapter:
            return f"{name} {self.chapter}"
        if self.verse_end and self.verse_end != self.verse_start:
            return f"{name} {self.chapter}:{self.verse_start}-{self.verse_end}"
        return f"{name} {self.chapter}:{self.verse_start}"

    def contains(self, verse_number: int) -> bool:
        if self.is_chapter:
            return True
        end = self.verse_end or self.verse_start
        return self.verse_start <= verse_number <= end

    def to_dict(self) -> dict:
        return {
            "book": self.book,
            "chapter": self.chapter,
            "verse_start": self.verse_start,
            "verse_end": self.verse_end,
            "ref": self.normalized,
        }


_ROMAN_PREFIX = {"I": "1", "II": "2", "III": "3"}

# "1 John 3:16", "I John 3", "2 Cor 13:4-7"
_NUMBERED_RE = re.compile(
    r"^(?:([123])\s*|(I{1,3})\s+)([A-Za-z][A-Za-z\s]*?)\.?\s+(\d+)(?::(\d+)(?:\s*[-–—]\s*(\d+))?)?$",
    re.IGNORECASE,
)

# "Genesis 1:1", "Song of Solomon 2", "Psalm 23:1-3"
_REGULAR_RE = re.compile(
    r"^([A-Za-z][A-Za-z\s]*?)\.?\s+(\d+)(?::(\d+)(?:\s*[-–—]\s*(\d+))?)?$",
    re.IGNORECASE,
)


def parse_reference(ref_string: str) -> Optional[ParsedReference]:
    """
    Split a reference into book code, chapter and verse range.

    Args:
        ref_string: Text such as "John 3:16-18"

    Returns:
        ParsedReference, or None if the string is not a reference

    Raises:
        UnknownBook: If the string is shaped like a reference but names
                     a book outside the canon
    """
    if not ref_string:
        return None

    ref_string = re.sub(r"\s+", " ", ref_string.strip())

    match = _NUMBERED_RE.match(ref_string)
    if match:
        digit, roman, book, chapter, verse_start, verse_end = match.groups()
        num = digit or _ROMAN_PREFIX[roman.upper()]
        book_name = f"{num} {book}"
    else:
        match = _REGULAR_RE.match(ref_string)
        if not match:
            return None
        book_name, chapter, verse_start, verse_end = match.groups()

    start = int(verse_start) if verse_start else None
    end = int(verse_end) if verse_end else None
    if start is not None and end is not None and end < start:
        return None

    return ParsedReference(
        book=derive_book_code(book_name),
        chapter=int(chapter),
        verse_start=start,
        verse_end=end,
        original=ref_string,
    )
