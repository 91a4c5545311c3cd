# lectern/routes/bible_api.py
"""
API endpoints for scripture text.

Provides:
- The upstream proxy (the only place the API key is handled)
- Cached, normalized book/chapter/verse reads
- Reference lookup
- Cache statistics and clearing
"""

import asyncio
import logging

import requests
from flask import Blueprint, Response, jsonify, request

from lectern.core import config
from lectern.services.bible import (
    ReadStatus,
    ReadThroughOrchestrator,
    UnknownBook,
    build_orchestrator,
)
from lectern.utils.errors import (
    error_response,
    missing_field,
    server_error,
    unknown_book,
    upstream_error,
    validation_error,
)

logger = logging.getLogger(__name__)

bible_bp = Blueprint("bible_api", __name__, url_prefix="/api/bible")

# Lazily initialized orchestrator
_orchestrator = None


def get_orchestrator() -> ReadThroughOrchestrator:
    """Get or create the ReadThroughOrchestrator instance."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = build_orchestrator()
    return _orchestrator


def set_orchestrator(orchestrator: ReadThroughOrchestrator):
    """Install a specific orchestrator (app factory and tests)."""
    global _orchestrator
    _orchestrator = orchestrator


def _list_response(result, name: str, serialize):
    if result.status is ReadStatus.UNAVAILABLE:
        return upstream_error(result.error)

    if result.status is ReadStatus.NOT_FOUND:
        payload = {name: [], "found": False}
        if result.error is not None:
            payload["detail"] = str(result.error)
        return jsonify(payload)

    return jsonify({
        name: serialize(result.value),
        "found": True,
        "cached": result.from_cache,
    })


# =============================================================================
# Upstream Proxy
# =============================================================================

@bible_bp.get("")
def proxy():
    """
    Forward a request to the upstream text API.

    Query params:
        path: Upstream sub-path (required) e.g., "bibles/{id}/books"

    Relays the upstream status and body unchanged.
    """
    api_key = config.BIBLE_API_KEY
    if not api_key:
        logger.error("Bible API key not configured")
        return server_error("api_key_missing", "Bible API key not configured")

    path = request.args.get("path")
    if not path:
        return missing_field("path")

    path = path.lstrip("/")
    if "://" in path or path.startswith(".."):
        return validation_error("invalid_path", "path must be an upstream sub-path")

    url = f"{config.BIBLE_API_BASE_URL.rstrip('/')}/{path}"
    try:
        upstream = requests.get(
            url,
            headers={"api-key": api_key, "Accept": "application/json"},
            timeout=config.BIBLE_API_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.warning(f"Proxy request to {path} failed: {e}")
        return error_response("upstream_unavailable", 502, str(e))

    return Response(
        upstream.content,
        status=upstream.status_code,
        content_type=upstream.headers.get("Content-Type", "application/json"),
    )


# =============================================================================
# Reader Endpoints
# =============================================================================

@bible_bp.get("/versions")
def list_versions():
    """Supported versions."""
    versions = get_orchestrator().list_versions()
    return jsonify({"versions": [v.to_dict() for v in versions]})


@bible_bp.get("/<version>/books")
def list_books(version):
    """Books of a version in canonical order."""
    result = asyncio.run(get_orchestrator().get_books(version))
    return _list_response(result, "books", lambda books: [b.to_dict() for b in books])


@bible_bp.get("/<version>/books/<book>/chapters")
def list_chapters(version, book):
    """Chapter numbers of a book."""
    try:
        result = asyncio.run(get_orchestrator().get_chapters(version, book))
    except UnknownBook as e:
        return unknown_book(e.name)
    return _list_response(result, "chapters", list)


@bible_bp.get("/<version>/books/<book>/chapters/<int:chapter>/verses")
def list_verses(version, book, chapter):
    """
    Verses of a chapter.

    Query params:
        summary: "true" to lead with the chapter summary entry
    """
    include_summary = request.args.get("summary", "").lower() == "true"
    try:
        result = asyncio.run(
            get_orchestrator().get_verses(version, book, chapter, include_summary=include_summary)
        )
    except UnknownBook as e:
        return unknown_book(e.name)
    return _list_response(result, "verses", lambda verses: [v.to_dict() for v in verses])


@bible_bp.get("/<version>/books/<book>/chapters/<int:chapter>/verses/<int:verse>")
def get_verse(version, book, chapter, verse):
    """A single verse."""
    try:
        result = asyncio.run(get_orchestrator().get_verse(version, book, chapter, verse))
    except UnknownBook as e:
        return unknown_book(e.name)

    if result.status is ReadStatus.UNAVAILABLE:
        return upstream_error(result.error)
    if result.status is ReadStatus.NOT_FOUND:
        return jsonify({"verse": None, "found": False, "detail": str(result.error)})
    return jsonify({"verse": result.value.to_dict(), "found": True, "cached": result.from_cache})


@bible_bp.get("/<version>/lookup")
def lookup(version):
    """
    Look up a reference.

    Query params:
        ref: Reference string (required) e.g., "John 3:16-18"
    """
    ref = request.args.get("ref")
    if not ref:
        return missing_field("ref")

    try:
        result = asyncio.run(get_orchestrator().lookup(version, ref))
    except UnknownBook as e:
        return unknown_book(e.name)
    except ValueError as e:
        return validation_error("invalid_reference", str(e))

    return _list_response(result, "verses", lambda verses: [v.to_dict() for v in verses])


# =============================================================================
# Cache Management
# =============================================================================

@bible_bp.get("/cache/stats")
def cache_stats():
    return jsonify(get_orchestrator().cache_stats())


@bible_bp.post("/cache/clear")
def clear_cache():
    """Clear process-local cache tiers. The shared tier is kept."""
    cleared = asyncio.run(get_orchestrator().clear_cache())
    return jsonify({"cleared": cleared})
