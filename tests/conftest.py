# tests/conftest.py
"""
Shared fixtures: an in-process fake of the upstream text API and
orchestrators wired to temporary cache tiers.
"""

import httpx
import pytest

from lectern.services.bible import ReadThroughOrchestrator, SummaryStore, UpstreamFetcher
from lectern.services.cache import (
    CacheTierChain,
    DocumentStore,
    LocalFileTier,
    MemoryTier,
    SharedDocumentTier,
)

BASE_URL = "https://api.test/v1"


class FakeClock:
    """Injectable clock for TTL tests."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeUpstream:
    """
    Minimal stand-in for the upstream text API.

    Genesis has an intro entry plus 50 chapters; chapter 1 has 31
    verses, chapter 2 has none, other chapters one verse each.
    Obadiah has a single chapter of 21 verses.

    Set `status` to force every response to that status code.
    """

    def __init__(self):
        self.calls = []
        self.status = None
        self.error_body = {"message": "Service unavailable"}
        self.books = [
            {"id": "EXO", "name": "Exodus"},
            {"id": "GEN", "name": "Genesis"},
            {"id": "XYZ", "name": "Not A Book"},
        ]

    def paths(self):
        return [call.url.path for call in self.calls]

    def _json(self, status, body):
        return httpx.Response(status, json=body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)

        if self.status is not None:
            return self._json(self.status, self.error_body)

        parts = request.url.path.split("/")
        # ["", "v1", "bibles", version, ...]
        route = parts[4:]

        if route == ["books"]:
            return self._json(200, {"data": self.books})

        if len(route) == 3 and route[0] == "books" and route[2] == "chapters":
            return self._json(200, {"data": self._chapters(route[1])})

        if len(route) == 3 and route[0] == "chapters" and route[2] == "verses":
            return self._json(200, {"data": self._verses(route[1])})

        if len(route) == 2 and route[0] == "verses":
            return self._single_verse(route[1])

        return self._json(404, {"message": "Not Found"})

    def _chapters(self, book):
        if book == "GEN":
            chapters = [{"id": "GEN.intro", "number": "intro"}]
            chapters += [{"id": f"GEN.{n}", "number": str(n)} for n in range(1, 51)]
            return chapters
        if book == "OBA":
            return [{"id": "OBA.intro", "number": "intro"}, {"id": "OBA.1", "number": "1"}]
        return []

    def _verses(self, chapter_id):
        if chapter_id == "GEN.1":
            return [
                {
                    "id": f"GEN.1.{n}",
                    "content": f'<p class="p"><span data-number="{n}" class="v">{n}</span>Genesis one verse {n}</p>',
                }
                for n in range(1, 32)
            ]
        if chapter_id == "GEN.2":
            return []
        if chapter_id == "OBA.1":
            return [{"id": f"OBA.1.{n}", "content": f"Obadiah verse {n}"} for n in range(1, 22)]
        book, chapter = chapter_id.split(".")
        return [{"id": f"{chapter_id}.1", "content": f"{book} {chapter} verse 1"}]

    def _single_verse(self, verse_id):
        if verse_id == "GEN.1.1":
            return self._json(200, {"data": {
                "id": "GEN.1.1",
                "reference": "Genesis 1:1",
                "content": "<p>In the beginning God created the heaven and the earth.</p>",
            }})
        if verse_id == "GEN.1.99":
            # Shape without any usable number
            return self._json(200, {"data": {"content": "stray text"}})
        return self._json(404, {"message": "Not Found"})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def fetcher(upstream):
    return UpstreamFetcher(
        base_url=BASE_URL,
        api_key="test-key",
        proxy_url="",
        transport=httpx.MockTransport(upstream.handler),
    )


@pytest.fixture
def document_store(tmp_path):
    return DocumentStore(str(tmp_path / "shared.db"))


@pytest.fixture
def tiers(tmp_path, document_store):
    return [
        MemoryTier(),
        LocalFileTier(tmp_path / "cache"),
        SharedDocumentTier(document_store),
    ]


@pytest.fixture
def chain(tiers, clock):
    return CacheTierChain(tiers, schema_version="1", clock=clock)


@pytest.fixture
def summaries(document_store):
    return SummaryStore(document_store)


@pytest.fixture
def orchestrator(chain, fetcher, summaries):
    return ReadThroughOrchestrator(chain, fetcher, summaries=summaries, use_shared=True)
