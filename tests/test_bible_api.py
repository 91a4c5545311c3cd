# tests/test_bible_api.py
"""
Tests for the /api/bible blueprint: the upstream proxy and the cached
reader endpoints.
"""

import asyncio

import pytest
import requests

from lectern.core import config
from lectern.server import create_app


@pytest.fixture
def client(orchestrator):
    app = create_app(orchestrator=orchestrator)
    app.config["TESTING"] = True
    return app.test_client()


class FakeProxyResponse:
    def __init__(self, status_code=200, content=b'{"data": []}', content_type="application/json"):
        self.status_code = status_code
        self.content = content
        self.headers = {"Content-Type": content_type}


# =============================================================================
# Proxy
# =============================================================================

def test_proxy_requires_api_key(client, monkeypatch):
    monkeypatch.setattr(config, "BIBLE_API_KEY", "")

    response = client.get("/api/bible?path=bibles")
    assert response.status_code == 500
    assert response.get_json()["error"] == "api_key_missing"


def test_proxy_requires_path(client, monkeypatch):
    monkeypatch.setattr(config, "BIBLE_API_KEY", "server-key")

    response = client.get("/api/bible")
    assert response.status_code == 400
    assert response.get_json()["error"] == "path_required"


def test_proxy_rejects_absolute_urls(client, monkeypatch):
    monkeypatch.setattr(config, "BIBLE_API_KEY", "server-key")

    response = client.get("/api/bible?path=https://evil.test/x")
    assert response.status_code == 400


def test_proxy_injects_key_and_relays_response(client, monkeypatch):
    monkeypatch.setattr(config, "BIBLE_API_KEY", "server-key")
    monkeypatch.setattr(config, "BIBLE_API_BASE_URL", "https://api.test/v1")
    calls = []

    def fake_get(url, headers=None, timeout=None):
        calls.append((url, headers))
        return FakeProxyResponse(status_code=403, content=b'{"message": "Forbidden"}')

    monkeypatch.setattr(requests, "get", fake_get)

    response = client.get("/api/bible", query_string={"path": "bibles/abc-01/books"})

    assert response.status_code == 403
    assert response.get_json() == {"message": "Forbidden"}
    url, headers = calls[0]
    assert url == "https://api.test/v1/bibles/abc-01/books"
    assert headers["api-key"] == "server-key"


def test_proxy_network_error(client, monkeypatch):
    monkeypatch.setattr(config, "BIBLE_API_KEY", "server-key")

    def fake_get(url, headers=None, timeout=None):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(requests, "get", fake_get)

    response = client.get("/api/bible?path=bibles")
    assert response.status_code == 502
    assert response.get_json()["error"] == "upstream_unavailable"


# =============================================================================
# Reader endpoints
# =============================================================================

def test_versions(client):
    response = client.get("/api/bible/versions")
    versions = response.get_json()["versions"]
    assert [v["abbreviation"] for v in versions] == ["NRSV", "KJV", "WLC", "GNT", "LXX"]


def test_books(client):
    response = client.get("/api/bible/kjv/books")
    data = response.get_json()
    assert data["found"] is True
    assert data["books"] == [
        {"id": "GEN", "name": "Genesis", "testament": "OT"},
        {"id": "EXO", "name": "Exodus", "testament": "OT"},
    ]


def test_chapters(client):
    response = client.get("/api/bible/kjv/books/Genesis/chapters")
    assert response.get_json()["chapters"] == list(range(1, 51))


def test_verses_cold_then_cached(client):
    first = client.get("/api/bible/kjv/books/GEN/chapters/1/verses").get_json()
    second = client.get("/api/bible/kjv/books/GEN/chapters/1/verses").get_json()

    assert len(first["verses"]) == 31
    assert first["cached"] is False
    assert second["cached"] is True
    assert second["verses"][0] == {
        "number": 1,
        "text": "Genesis one verse 1",
        "reference": "de4e12af7f28f599-01:GEN.1.1",
    }


def test_verses_with_summary(client, summaries):
    asyncio.run(summaries.save_chapter_summary("GEN", 1, "Creation"))

    response = client.get("/api/bible/kjv/books/GEN/chapters/1/verses?summary=true")
    verses = response.get_json()["verses"]
    assert verses[0]["number"] == "summary"
    assert verses[0]["text"] == "Creation"


def test_missing_chapter_is_empty_not_error(client):
    response = client.get("/api/bible/kjv/books/GEN/chapters/51/verses")
    data = response.get_json()

    assert response.status_code == 200
    assert data["found"] is False
    assert data["verses"] == []


def test_unknown_book_is_400(client):
    response = client.get("/api/bible/kjv/books/Hezekiah/chapters")
    assert response.status_code == 400
    assert response.get_json()["error"] == "unknown_book"


def test_rejected_key_is_502_forbidden(client, upstream):
    upstream.status = 403
    upstream.error_body = {"message": "Invalid API key"}

    response = client.get("/api/bible/kjv/books/GEN/chapters/1/verses")
    data = response.get_json()

    assert response.status_code == 502
    assert data["error"] == "upstream_forbidden"
    assert data["upstream_status"] == 403
    assert data["upstream_body"] == "Invalid API key"


def test_upstream_outage_is_502_unavailable(client, upstream):
    upstream.status = 500

    response = client.get("/api/bible/kjv/books")
    assert response.status_code == 502
    assert response.get_json()["error"] == "upstream_unavailable"
    assert response.get_json()["upstream_status"] == 500


def test_unlisted_version_ref_is_passed_upstream(client):
    response = client.get("/api/bible/my%20bible/books")
    assert response.status_code == 200
    assert response.get_json()["found"] is True

    verses = client.get("/api/bible/en_kjv/books/GEN/chapters/1/verses").get_json()
    assert verses["found"] is True
    assert len(verses["verses"]) == 31


def test_unlisted_version_rejected_upstream_is_502(client, upstream):
    upstream.status = 404

    response = client.get("/api/bible/en_kjv/books")
    assert response.status_code == 502
    assert response.get_json()["error"] == "upstream_unavailable"
    assert response.get_json()["upstream_status"] == 404


def test_lookup_with_unlisted_version(client):
    response = client.get("/api/bible/en_kjv/lookup", query_string={"ref": "Genesis 1:1"})
    assert response.status_code == 200
    assert [v["number"] for v in response.get_json()["verses"]] == [1]


def test_single_verse(client):
    data = client.get("/api/bible/kjv/books/GEN/chapters/1/verses/1").get_json()
    assert data["found"] is True
    assert data["verse"]["number"] == 1


def test_single_verse_not_found(client):
    data = client.get("/api/bible/kjv/books/GEN/chapters/1/verses/99").get_json()
    assert data["found"] is False
    assert data["verse"] is None


# =============================================================================
# Lookup
# =============================================================================

def test_lookup(client):
    response = client.get("/api/bible/kjv/lookup", query_string={"ref": "Genesis 1:1-2"})
    assert [v["number"] for v in response.get_json()["verses"]] == [1, 2]


def test_lookup_requires_ref(client):
    response = client.get("/api/bible/kjv/lookup")
    assert response.status_code == 400
    assert response.get_json()["error"] == "ref_required"


def test_lookup_invalid_reference(client):
    response = client.get("/api/bible/kjv/lookup", query_string={"ref": "???"})
    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_reference"


def test_lookup_unknown_book(client):
    response = client.get("/api/bible/kjv/lookup", query_string={"ref": "Hezekiah 1:1"})
    assert response.status_code == 400
    assert response.get_json()["error"] == "unknown_book"


# =============================================================================
# Cache management
# =============================================================================

def test_cache_stats_and_clear(client):
    client.get("/api/bible/kjv/books/GEN/chapters")

    stats = client.get("/api/bible/cache/stats").get_json()
    assert stats["writes"] == 1
    assert stats["misses"] == 1

    cleared = client.post("/api/bible/cache/clear").get_json()
    assert cleared == {"cleared": 2}
