# tests/test_normalizer.py
"""
Tests for normalization of raw upstream payloads.
"""

import pytest

from lectern.services.bible import (
    BOOKS,
    SUMMARY,
    ChapterContext,
    Verse,
    normalize_book_list,
    normalize_chapter_list,
    normalize_verse,
    normalize_verse_list,
    order_verses,
)
from lectern.services.bible.normalizer import (
    PLACEHOLDER_TEXT,
    clean_text,
    parse_verse_number,
)

CONTEXT = ChapterContext("de4e12af7f28f599-01", "GEN", 1)


# =============================================================================
# Verse numbers
# =============================================================================

@pytest.mark.parametrize("raw,expected", [
    ({"id": "GEN.1.7"}, 7),
    ({"number": "7"}, 7),
    ({"number": 7}, 7),
    ({"reference": "GEN.1:7"}, 7),
    ({"reference": "Genesis 1:7"}, 7),
    ({"id": "GEN.1.3", "number": "9"}, 3),
    ({"id": "GEN.1.x", "number": "abc", "reference": "Genesis 1:4"}, 4),
])
def test_parse_verse_number(raw, expected):
    assert parse_verse_number(raw) == expected


@pytest.mark.parametrize("raw", [
    {},
    {"number": "0"},
    {"number": "-2"},
    {"number": True},
    {"number": "²"},
    {"reference": "Genesis 1"},
    {"content": "text only"},
])
def test_unparseable_verse_number(raw):
    assert parse_verse_number(raw) is None


def test_verse_without_number_is_dropped():
    assert normalize_verse({"content": "stray"}, CONTEXT) is None
    assert normalize_verse("not a dict", CONTEXT) is None


def test_normalize_verse_reference_uses_context():
    verse = normalize_verse({"id": "GEN.1.7", "content": "<p>Text</p>"}, CONTEXT)
    assert verse == Verse(number=7, text="Text", reference="de4e12af7f28f599-01:GEN.1.7")


def test_normalize_verse_without_context_keeps_upstream_id():
    verse = normalize_verse({"id": "GEN.1.7", "text": "Text"})
    assert verse.reference == "GEN.1.7"


# =============================================================================
# Text
# =============================================================================

def test_clean_text_strips_markup():
    raw = '<p class="p"><span data-number="1" class="v">1</span>In the &amp; beginning</p>'
    assert clean_text(raw) == "In the & beginning"


def test_clean_text_separates_blocks():
    assert clean_text("<p>one</p><p>two</p>") == "one two"
    assert clean_text("line<br/>break") == "line break"


def test_verse_text_fallback_order():
    """content, then text, then reference."""
    assert normalize_verse({"id": "GEN.1.1", "content": "", "text": "from text"}).text == "from text"
    assert normalize_verse({"id": "GEN.1.1", "reference": "Genesis 1:1"}).text == "Genesis 1:1"
    assert normalize_verse({"id": "GEN.1.1"}).text == ""


# =============================================================================
# Verse lists
# =============================================================================

def test_verse_list_is_sorted_and_deduplicated():
    raw = [
        {"id": "GEN.1.3", "content": "three"},
        {"id": "GEN.1.1", "content": "one"},
        {"id": "GEN.1.3", "content": "three again"},
        {"content": "no number"},
        {"id": "GEN.1.2", "content": "two"},
    ]
    verses = normalize_verse_list(raw, CONTEXT)
    assert [v.number for v in verses] == [1, 2, 3]
    assert verses[2].text == "three"


@pytest.mark.parametrize("raw", [
    [],
    None,
    {"not": "a list"},
    [{"content": "x"}],
    [{"number": "²", "content": "x"}],
])
def test_empty_verse_list_becomes_placeholder(raw):
    verses = normalize_verse_list(raw, CONTEXT)
    assert len(verses) == 1
    assert verses[0].placeholder
    assert verses[0].text == PLACEHOLDER_TEXT
    assert verses[0].number == 1


def test_order_verses_deduplicates_summary():
    summary = Verse(SUMMARY, "Creation")
    verses = [
        Verse(2, "two"),
        summary,
        Verse(1, "one"),
        Verse(SUMMARY, "Another summary"),
    ]

    ordered = order_verses(verses, include_summary=True)
    assert [v.number for v in ordered] == [SUMMARY, 1, 2]
    assert ordered[0].text == "Creation"


def test_order_verses_strips_summary_when_not_requested():
    verses = [Verse(SUMMARY, "Creation"), Verse(1, "one")]
    assert [v.number for v in order_verses(verses)] == [1]


def test_verse_round_trip_keeps_summary_number():
    summary = Verse(SUMMARY, "Creation", reference="x:GEN.1.summary")
    assert Verse.from_dict(summary.to_dict()) == summary
    assert Verse.from_dict({"number": "4", "text": "t"}).number == 4


# =============================================================================
# Chapters and books
# =============================================================================

def test_chapter_list_skips_intro_and_unusable_entries():
    raw = [
        {"id": "GEN.intro", "number": "intro"},
        {"id": "GEN.2", "number": "2"},
        {"id": "GEN.1", "number": "1"},
        {"id": "GEN.1b", "number": "1"},
        {"number": "3"},
        {"id": "GEN.x", "number": "x"},
        "junk",
    ]
    chapters = normalize_chapter_list(raw)
    assert [c.number for c in chapters] == [1, 2]
    assert chapters[0].upstream_id == "GEN.1"


def test_chapter_list_with_nothing_usable_is_empty():
    assert normalize_chapter_list([{"id": "GEN.intro", "number": "intro"}]) == []
    assert normalize_chapter_list(None) == []


def test_book_list_is_canonical():
    raw = [
        {"id": "EXO", "name": "<b>Exodus</b>"},
        {"id": "XYZ", "name": "Apocrypha"},
        {"id": "gen", "name": ""},
    ]
    books = normalize_book_list(raw)
    assert [b.id for b in books] == ["GEN", "EXO"]
    assert books[0].display_name == "Genesis"
    assert books[1].display_name == "Exodus"
    assert books[1].testament == "OT"


def test_book_list_fallback():
    assert normalize_book_list([]) == list(BOOKS)
    assert normalize_book_list([{"id": "XYZ"}], fallback=False) == []
