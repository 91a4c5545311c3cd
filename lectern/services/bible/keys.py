# lectern/services/bible/keys.py
"""
Cache key derivation.

Keys are built from (kind, version, book, chapter, verse) and joined
with a colon. Alphanumerics and hyphens pass through unchanged; any
other character (dots included) is written as ".XX" per UTF-8 byte.
The escape is reversible and never emits a colon or underscore, so two
different tuples can never produce the same key, even after the file
tier maps the colon to an underscore.
"""

from enum import Enum

KEY_SEPARATOR = ":"


class Kind(Enum):
    """Logical entity kinds served by the orchestrator."""
    BOOKS = "books"
    CHAPTERS = "chapters"
    VERSES = "verses"
    VERSE = "verse"

    @property
    def is_metadata(self) -> bool:
        """Metadata kinds rarely change upstream and get the long TTL."""
        return self is Kind.BOOKS


def _escape_char(ch: str) -> str:
    if ch.isascii() and (ch.isalnum() or ch == "-"):
        return ch
    return "".join(f".{b:02X}" for b in ch.encode("utf-8"))


def _normalize_component(value) -> str:
    return "".join(_escape_char(ch) for ch in str(value))


def derive_key(kind, version, book=None, chapter=None, verse=None) -> str:
    """
    Build a collision-free cache key.

    Components are positional: chapter requires book, verse requires
    chapter. Omitted trailing components are left out of the key.

    Examples:
        derive_key(Kind.VERSES, "de4e12af7f28f599-01", "GEN", 1)
            -> "verses:de4e12af7f28f599-01:GEN:1"
        derive_key(Kind.BOOKS, "en_kjv")
            -> "books:en.5Fkjv"
    """
    kind_value = kind.value if isinstance(kind, Kind) else kind

    parts = [kind_value, version]
    trailing = [book, chapter, verse]

    missing = False
    for value in trailing:
        if value is None or value == "":
            missing = True
            continue
        if missing:
            raise ValueError(
                "Cache key components must be given in order "
                "(book, chapter, verse)"
            )
        parts.append(value)

    if version is None or version == "":
        raise ValueError("Cache key requires a version")

    return KEY_SEPARATOR.join(_normalize_component(p) for p in parts)
