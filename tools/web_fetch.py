"""
Web Fetch Tool

Exposes the bounded redirect fetcher to the model as `fetch_url`.
Returns the FetchResult as a plain dict, success or not.
"""

import logging
from typing import Any, Dict

from fetcher.redirect_fetcher import RedirectFetcher
from schemas.fetch import DEFAULT_MAX_BYTES, FetchRequest
from tools.base import Tool

logger = logging.getLogger(__name__)


class WebFetchTool(Tool):
    """
    Fetch a public web page for the model.

    Private hosts, non-http(s) URLs and oversized bodies are handled by the
    fetcher; this class only maps arguments in and results out.
    """

    def __init__(self, fetcher: RedirectFetcher):
        self._fetcher = fetcher

    @property
    def name(self) -> str:
        return "fetch_url"

    @property
    def description(self) -> str:
        return (
            "Fetch a public web page over HTTP(S) and return its status, final URL, "
            "content type and (possibly truncated) text body."
        )

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": "Absolute http(s) URL to fetch",
                },
                "max_bytes": {
                    "type": "integer",
                    "description": f"Maximum body bytes to read (default: {DEFAULT_MAX_BYTES})",
                    "default": DEFAULT_MAX_BYTES,
                },
            },
            "required": ["url"],
        }

    async def run(self, input: Dict[str, Any]) -> Dict[str, Any]:
        request = FetchRequest(
            url=input.get("url"),
            max_bytes=input.get("max_bytes", DEFAULT_MAX_BYTES),
        )
        result = await self._fetcher.fetch(request.url, request.max_bytes)
        if result.ok:
            logger.info(f"fetch_url {request.url} -> {result.status} ({len(result.body_text or '')} chars)")
        else:
            logger.info(f"fetch_url {request.url} -> {result.error.value}")
        return result.to_tool_output()
