# lectern/services/bible/upstream.py
"""
Client for the upstream scripture text API.

Performs the network calls only. Payloads are returned raw (the
contents of the JSON "data" envelope) and are interpreted solely by the
normalizer. No retries happen here; failures surface as typed errors.
"""

import logging
from typing import Any, Optional
from urllib.parse import urlencode

import httpx

from lectern.core import config

from .errors import InvalidUpstreamShape, UpstreamUnavailable, truncate_body

logger = logging.getLogger(__name__)

VERSES_QUERY = {
    "include-notes": "false",
    "include-titles": "true",
    "include-chapter-numbers": "false",
    "include-verse-numbers": "true",
    "include-verse-spans": "false",
}


class UpstreamFetcher:
    """
    Async HTTP access to /bibles/{version}/... endpoints.

    Usage:
        fetcher = UpstreamFetcher(api_key="...")
        raw_chapters = await fetcher.chapters("de4e12af7f28f599-01", "GEN")

    In proxy mode (proxy_url set) every request goes to
    "{proxy_url}?path=<sub-path>" and the proxy injects the API key.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        proxy_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or config.BIBLE_API_BASE_URL).rstrip("/")
        self.api_key = config.BIBLE_API_KEY if api_key is None else api_key
        self.timeout = timeout or config.BIBLE_API_TIMEOUT
        self.proxy_url = config.BIBLE_API_PROXY_URL if proxy_url is None else proxy_url
        self._transport = transport

        if not self.api_key and not self.proxy_url:
            logger.warning("No Bible API key configured; upstream calls will be rejected")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def _request_args(self, path: str, params: Optional[dict]) -> tuple[str, dict, dict]:
        headers = {"Accept": "application/json"}
        if self.proxy_url:
            sub_path = path
            if params:
                sub_path = f"{path}?{urlencode(params)}"
            return self.proxy_url, {"path": sub_path}, headers

        headers["api-key"] = self.api_key
        return f"{self.base_url}/{path}", dict(params or {}), headers

    @staticmethod
    def _error_body(response: httpx.Response) -> str:
        """Error bodies may be JSON or plain text."""
        try:
            data = response.json()
        except ValueError:
            return response.text
        if isinstance(data, dict):
            for field_name in ("message", "error", "detail"):
                value = data.get(field_name)
                if isinstance(value, str) and value:
                    return value
        return response.text

    async def fetch(self, path: str, params: Optional[dict] = None) -> Any:
        """
        GET an upstream sub-path and return the "data" envelope contents.

        Args:
            path: Sub-path such as "bibles/{version}/books"
            params: Optional query parameters

        Returns:
            The raw "data" value, or None if the body has no envelope

        Raises:
            UpstreamUnavailable: Network error or non-2xx status
            InvalidUpstreamShape: 2xx body that is not JSON
        """
        path = path.lstrip("/")
        url, query, headers = self._request_args(path, params)

        try:
            logger.debug(f"Fetching {path}")
            async with self._client() as client:
                response = await client.get(url, params=query, headers=headers)
        except httpx.HTTPError as e:
            logger.warning(f"Network error fetching {path}: {e}")
            raise UpstreamUnavailable(f"Network error fetching {path}: {e}", path=path) from e

        if not response.is_success:
            body = self._error_body(response)
            if response.status_code in (401, 403):
                logger.warning(
                    f"Upstream rejected credentials for {path} "
                    f"({response.status_code}); check BIBLE_API_KEY"
                )
            else:
                logger.warning(f"Upstream returned {response.status_code} for {path}")
            raise UpstreamUnavailable(
                f"Upstream request failed: {response.status_code} {response.reason_phrase}",
                status=response.status_code,
                body=body,
                path=path,
            )

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning(f"Non-JSON body from {path}: {truncate_body(response.text, 100)}")
            raise InvalidUpstreamShape(
                f"Upstream returned a non-JSON body for {path}",
                body=response.text,
                path=path,
            ) from e

        if not isinstance(payload, dict):
            logger.debug(f"Response for {path} has no data envelope")
            return None
        return payload.get("data")

    async def books(self, version_id: str) -> Any:
        return await self.fetch(f"bibles/{version_id}/books")

    async def chapters(self, version_id: str, book: str) -> Any:
        return await self.fetch(f"bibles/{version_id}/books/{book}/chapters")

    async def verses(self, version_id: str, chapter_id: str) -> Any:
        return await self.fetch(f"bibles/{version_id}/chapters/{chapter_id}/verses", VERSES_QUERY)

    async def verse(self, version_id: str, verse_id: str) -> Any:
        return await self.fetch(f"bibles/{version_id}/verses/{verse_id}")
