# lectern/services/bible/models.py
"""
Canonical chapter/verse records and typed read results.

These are the shapes the rest of the application depends on. Records
round-trip through to_dict/from_dict so every cache tier can hold them
as JSON.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar, Union

SUMMARY = "summary"

T = TypeVar("T")


@dataclass(frozen=True)
class Chapter:
    """
    A chapter within a book.

    upstream_id is only needed to fetch the chapter's verses.
    """
    number: int
    upstream_id: str = field(default="", repr=False)

    def to_dict(self) -> dict:
        return {"id": self.upstream_id, "number": self.number}

    @classmethod
    def from_dict(cls, data: dict) -> "Chapter":
        return cls(number=int(data["number"]), upstream_id=data.get("id", ""))


@dataclass(frozen=True)
class Verse:
    """
    A single verse, or the synthetic chapter summary entry.

    Attributes:
        number: Verse number, or "summary" for the chapter summary
        text: Plain text (HTML stripped)
        reference: "{version_id}:{BOOK}.{chapter}.{verse}"
        placeholder: True only for the fallback verse shown when
                     upstream had no usable verses
    """
    number: Union[int, str]
    text: str
    reference: str = ""
    placeholder: bool = False

    @property
    def is_summary(self) -> bool:
        return self.number == SUMMARY

    def to_dict(self) -> dict:
        data = {
            "number": self.number,
            "text": self.text,
            "reference": self.reference,
        }
        if self.placeholder:
            data["placeholder"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Verse":
        number = data["number"]
        if number != SUMMARY:
            number = int(number)
        return cls(
            number=number,
            text=data.get("text", ""),
            reference=data.get("reference", ""),
            placeholder=bool(data.get("placeholder", False)),
        )


@dataclass(frozen=True)
class ChapterContext:
    """Where a verse list came from; used to build verse references."""
    version_id: str
    book: str
    chapter: int

    def reference(self, verse) -> str:
        return f"{self.version_id}:{self.book}.{self.chapter}.{verse}"


class ReadStatus(Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"


@dataclass
class ReadResult(Generic[T]):
    """
    Outcome of a read-through request.

    not_found is a legitimate empty state (some versions lack some
    chapters); unavailable means the upstream call failed and carries
    the error with its status and body.
    """
    status: ReadStatus
    value: Optional[T] = None
    error: Optional[Exception] = None
    from_cache: bool = False

    @classmethod
    def ok(cls, value: T, from_cache: bool = False) -> "ReadResult[T]":
        return cls(ReadStatus.OK, value=value, from_cache=from_cache)

    @classmethod
    def not_found(cls, error: Optional[Exception] = None, value: Any = None) -> "ReadResult":
        return cls(ReadStatus.NOT_FOUND, value=value, error=error)

    @classmethod
    def unavailable(cls, error: Exception, value: Any = None) -> "ReadResult":
        return cls(ReadStatus.UNAVAILABLE, value=value, error=error)

    @property
    def found(self) -> bool:
        return self.status is ReadStatus.OK
