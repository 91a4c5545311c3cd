# lectern/services/bible/normalizer.py
"""
Normalization of raw upstream payloads into canonical records.

This module is the only code that reads raw upstream fields. Upstream
payloads vary in field names, embed HTML, and are often incomplete;
normalization never raises on missing fields and degrades to explicit
fallbacks instead:

- Verses without a parseable number are dropped, never numbered by guess.
- A verse list with no usable verses becomes a single placeholder verse.
- A chapter list with no usable chapters is empty (reported as not found).
- A book list with no usable books falls back to the static canon.
"""

import html
import logging
import re
from typing import Any, Iterable, Optional

from .books import BOOKS, BOOKS_BY_CODE, BOOK_ORDER, Book
from .models import Chapter, ChapterContext, Verse

logger = logging.getLogger(__name__)

PLACEHOLDER_TEXT = "Verse text not available"

INTRO_CHAPTER = "intro"

_ID_SUFFIX_RE = re.compile(r"\.(\d+)$")
_REFERENCE_VERSE_RE = re.compile(r":(\d+)")

# Verse-number markers the API emits when include-verse-numbers=true
_VERSE_MARKER_RE = re.compile(
    r"<span[^>]*class=\"v\"[^>]*>.*?</span>", re.IGNORECASE | re.DOTALL
)
_BLOCK_TAG_RE = re.compile(r"</?(?:p|div|br|li|h\d)\b[^>]*>", re.IGNORECASE)
_TAG_RE = re.compile(r"</?[^>]+(?:>|$)")
_WHITESPACE_RE = re.compile(r"\s+")


# -----------------------------------------------------------------------------
# Field parsing
# -----------------------------------------------------------------------------

def _positive_int(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str):
        value = value.strip()
        if value.isdecimal():
            number = int(value)
            return number if number > 0 else None
    return None


def parse_verse_number(raw: dict) -> Optional[int]:
    """
    Extract a verse number from a raw verse payload.

    Tried in order, first success wins:
        1. trailing ".N" of the upstream id ("GEN.1.7")
        2. numeric "number" field
        3. ":N" segment of the reference ("GEN.1:7", "Genesis 1:7")

    Returns:
        Verse number, or None when nothing parses
    """
    verse_id = raw.get("id")
    if isinstance(verse_id, str):
        match = _ID_SUFFIX_RE.search(verse_id.strip())
        if match:
            number = _positive_int(match.group(1))
            if number:
                return number

    number = _positive_int(raw.get("number"))
    if number:
        return number

    reference = raw.get("reference")
    if isinstance(reference, str):
        match = _REFERENCE_VERSE_RE.search(reference)
        if match:
            number = _positive_int(match.group(1))
            if number:
                return number

    return None


def clean_text(text: str) -> str:
    """Strip HTML tags, decode entities and collapse whitespace."""
    if not text:
        return ""
    text = _VERSE_MARKER_RE.sub(" ", text)
    text = _BLOCK_TAG_RE.sub(" ", text)
    text = _TAG_RE.sub("", text)
    text = html.unescape(text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def extract_verse_text(raw: dict) -> str:
    """Pick the first non-empty of content, text, reference."""
    for field_name in ("content", "text", "reference"):
        value = raw.get(field_name)
        if isinstance(value, str) and value.strip():
            return clean_text(value)
    return ""


def _as_list(raw: Any) -> list:
    if isinstance(raw, list):
        return raw
    if raw is None:
        return []
    logger.debug(f"Expected a list payload, got {type(raw).__name__}")
    return []


# -----------------------------------------------------------------------------
# Verses
# -----------------------------------------------------------------------------

def normalize_verse(raw: Any, context: Optional[ChapterContext] = None) -> Optional[Verse]:
    """
    Convert one raw verse payload into a Verse.

    Args:
        raw: Upstream verse object
        context: Version/book/chapter the verse belongs to, used to build
                 its reference. Without it the upstream id is used.

    Returns:
        Verse, or None if no verse number could be extracted
    """
    if not isinstance(raw, dict):
        return None

    number = parse_verse_number(raw)
    if number is None:
        logger.debug(f"Dropping verse without a number: {str(raw)[:100]}")
        return None

    if context is not None:
        reference = context.reference(number)
    else:
        reference = raw.get("id") or raw.get("reference") or ""
        reference = reference if isinstance(reference, str) else ""

    return Verse(number=number, text=extract_verse_text(raw), reference=reference)


def placeholder_verse(context: Optional[ChapterContext] = None) -> Verse:
    return Verse(
        number=1,
        text=PLACEHOLDER_TEXT,
        reference=context.reference(1) if context else "",
        placeholder=True,
    )


def normalize_verse_list(raw: Any, context: Optional[ChapterContext] = None) -> list[Verse]:
    """
    Convert a raw verse list into sorted, de-duplicated Verses.

    Falls back to a single placeholder verse when nothing usable remains,
    so a chapter is never rendered as a totally empty pane.
    """
    verses = {}
    for item in _as_list(raw):
        verse = normalize_verse(item, context)
        if verse is not None and verse.number not in verses:
            verses[verse.number] = verse

    if not verses:
        logger.info(f"No usable verses upstream for {context}, using placeholder")
        return [placeholder_verse(context)]

    return [verses[n] for n in sorted(verses)]


def order_verses(verses: Iterable[Verse], include_summary: bool = False) -> list[Verse]:
    """
    Sort verses for display.

    The first summary entry (if requested) leads; any further summary
    entries are discarded. Numbered verses follow in ascending order.
    """
    summary = None
    numbered = {}
    for verse in verses:
        if verse.is_summary:
            if summary is None:
                summary = verse
            continue
        numbered.setdefault(verse.number, verse)

    ordered = [numbered[n] for n in sorted(numbered)]
    if include_summary and summary is not None:
        ordered.insert(0, summary)
    return ordered


# -----------------------------------------------------------------------------
# Chapters and books
# -----------------------------------------------------------------------------

def normalize_chapter_list(raw: Any) -> list[Chapter]:
    """
    Convert a raw chapter list into Chapters sorted by number.

    "intro" entries are front matter and are skipped, as are entries
    without a positive number or an upstream id.
    """
    chapters = {}
    for item in _as_list(raw):
        if not isinstance(item, dict):
            continue

        raw_number = item.get("number")
        if isinstance(raw_number, str) and raw_number.strip().lower() == INTRO_CHAPTER:
            continue

        number = _positive_int(raw_number)
        upstream_id = item.get("id")
        if number is None or not isinstance(upstream_id, str) or not upstream_id:
            continue

        chapters.setdefault(number, Chapter(number=number, upstream_id=upstream_id))

    return [chapters[n] for n in sorted(chapters)]


def normalize_book_list(raw: Any, fallback: bool = True) -> list[Book]:
    """
    Convert a raw book list into canonical Books in canonical order.

    Upstream order is ignored. Books outside the canon are skipped.
    When nothing usable remains the static canon is returned, unless
    fallback is False, in which case the result is empty.
    """
    books = {}
    for item in _as_list(raw):
        if not isinstance(item, dict):
            continue
        code = item.get("id")
        if not isinstance(code, str) or code.upper() not in BOOKS_BY_CODE:
            continue
        code = code.upper()
        canonical = BOOKS_BY_CODE[code]
        name = item.get("name")
        name = clean_text(name) if isinstance(name, str) else ""
        books.setdefault(
            code,
            Book(id=code, display_name=name or canonical.display_name, testament=canonical.testament),
        )

    if not books:
        if not fallback:
            return []
        logger.info("No usable books upstream, using static canon")
        return list(BOOKS)

    return sorted(books.values(), key=lambda b: BOOK_ORDER[b.id])
