# lectern/services/bible/books.py
"""
Static 66-book canon and book name to upstream code mapping.

Book codes follow the upstream text API (GEN, EXO, ... JHN, ... REV).
This is the one place free-text book names enter the system, so any
name outside the canon is rejected before a request is made.
"""

import re
from dataclasses import dataclass

from .errors import UnknownBook


@dataclass(frozen=True)
class Book:
    """A canonical book."""
    id: str
    display_name: str
    testament: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.display_name,
            "testament": self.testament,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Book":
        return cls(
            id=data["id"],
            display_name=data["name"],
            testament=data.get("testament", "OT"),
        )


_OLD_TESTAMENT = [
    ("GEN", "Genesis"),
    ("EXO", "Exodus"),
    ("LEV", "Leviticus"),
    ("NUM", "Numbers"),
    ("DEU", "Deuteronomy"),
    ("JOS", "Joshua"),
    ("JDG", "Judges"),
    ("RUT", "Ruth"),
    ("1SA", "1 Samuel"),
    ("2SA", "2 Samuel"),
    ("1KI", "1 Kings"),
    ("2KI", "2 Kings"),
    ("1CH", "1 Chronicles"),
    ("2CH", "2 Chronicles"),
    ("EZR", "Ezra"),
    ("NEH", "Nehemiah"),
    ("EST", "Esther"),
    ("JOB", "Job"),
    ("PSA", "Psalms"),
    ("PRO", "Proverbs"),
    ("ECC", "Ecclesiastes"),
    ("SNG", "Song of Solomon"),
    ("ISA", "Isaiah"),
    ("JER", "Jeremiah"),
    ("LAM", "Lamentations"),
    ("EZK", "Ezekiel"),
    ("DAN", "Daniel"),
    ("HOS", "Hosea"),
    ("JOL", "Joel"),
    ("AMO", "Amos"),
    ("OBA", "Obadiah"),
    ("JON", "Jonah"),
    ("MIC", "Micah"),
    ("NAM", "Nahum"),
    ("HAB", "Habakkuk"),
    ("ZEP", "Zephaniah"),
    ("HAG", "Haggai"),
    ("ZEC", "Zechariah"),
    ("MAL", "Malachi"),
]

_NEW_TESTAMENT = [
    ("MAT", "Matthew"),
    ("MRK", "Mark"),
    ("LUK", "Luke"),
    ("JHN", "John"),
    ("ACT", "Acts"),
    ("ROM", "Romans"),
    ("1CO", "1 Corinthians"),
    ("2CO", "2 Corinthians"),
    ("GAL", "Galatians"),
    ("EPH", "Ephesians"),
    ("PHP", "Philippians"),
    ("COL", "Colossians"),
    ("1TH", "1 Thessalonians"),
    ("2TH", "2 Thessalonians"),
    ("1TI", "1 Timothy"),
    ("2TI", "2 Timothy"),
    ("TIT", "Titus"),
    ("PHM", "Philemon"),
    ("HEB", "Hebrews"),
    ("JAS", "James"),
    ("1PE", "1 Peter"),
    ("2PE", "2 Peter"),
    ("1JN", "1 John"),
    ("2JN", "2 John"),
    ("3JN", "3 John"),
    ("JUD", "Jude"),
    ("REV", "Revelation"),
]

BOOKS = tuple(
    [Book(code, name, "OT") for code, name in _OLD_TESTAMENT]
    + [Book(code, name, "NT") for code, name in _NEW_TESTAMENT]
)

BOOKS_BY_CODE = {book.id: book for book in BOOKS}

# Canonical position, used to order upstream book lists
BOOK_ORDER = {book.id: index for index, book in enumerate(BOOKS)}


def _name_keys(name: str) -> list[str]:
    key = name.lower()
    return [key, key.replace(" ", "")]


# Keys are lowercase, values are upstream codes
BOOK_NAME_TO_CODE = {}
for _book in BOOKS:
    BOOK_NAME_TO_CODE[_book.id.lower()] = _book.id
    for _key in _name_keys(_book.display_name):
        BOOK_NAME_TO_CODE[_key] = _book.id

BOOK_NAME_TO_CODE.update({
    "psalm": "PSA",
    "song of songs": "SNG",
    "songofsongs": "SNG",
})


def derive_book_code(name: str) -> str:
    """
    Map a book name or code to its upstream three-letter code.

    Args:
        name: "Genesis", "genesis", "GEN", "1 Samuel", "1samuel", ...

    Returns:
        Upstream book code (e.g., "GEN", "1SA")

    Raises:
        UnknownBook: If the name is not one of the 66 canonical books
    """
    if not isinstance(name, str):
        raise UnknownBook(str(name))

    key = name.lower().replace(".", " ").strip()
    key = re.sub(r"\s+", " ", key)

    code = BOOK_NAME_TO_CODE.get(key)
    if code is None:
        raise UnknownBook(name)
    return code


def is_canonical_code(code) -> bool:
    return isinstance(code, str) and code.upper() in BOOKS_BY_CODE
