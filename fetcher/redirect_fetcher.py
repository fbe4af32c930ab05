"""
Bounded Redirect Fetcher

One logical GET for the model-directed agent.

DESIGN RULES:
- Redirects are followed here, never by the transport
- Host safety is re-checked on every hop
- Body reads stop at max_bytes
- Nothing raises out of fetch(); every failure is a FetchResult
"""

import asyncio
import logging
from typing import Optional, Tuple
from urllib.parse import urljoin, urlsplit

import httpx

from fetcher.host_safety import Resolver, is_host_forbidden, resolve_addresses, resolve_and_check
from schemas.fetch import DEFAULT_MAX_BYTES, FetchErrorKind, FetchRequest, FetchResult

logger = logging.getLogger(__name__)

MAX_HOPS = 5
FETCH_TIMEOUT_SECONDS = 12.0
REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})
TEXT_CONTENT_MARKERS = ("text/", "json", "xml", "html")
USER_AGENT = "deal-finder-proxy/1.0 (+fetch_url)"


class _HopResponse:
    """What one hop produced: either a redirect target or a terminal response."""

    def __init__(
        self,
        status: int,
        location: Optional[str] = None,
        content_type: Optional[str] = None,
        body_text: str = "",
        truncated: bool = False,
    ):
        self.status = status
        self.location = location
        self.content_type = content_type
        self.body_text = body_text
        self.truncated = truncated


def validate_url(url: str) -> Optional[FetchErrorKind]:
    """Return the error kind for a URL the fetcher must refuse, else None."""
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError:
        return FetchErrorKind.INVALID_URL

    if not parts.scheme:
        return FetchErrorKind.INVALID_URL
    if parts.scheme.lower() not in ("http", "https"):
        return FetchErrorKind.UNSUPPORTED_PROTOCOL
    if not hostname:
        return FetchErrorKind.INVALID_URL
    return None


def is_text_content(content_type: Optional[str]) -> bool:
    if not content_type:
        return False
    media_type = content_type.lower()
    return any(marker in media_type for marker in TEXT_CONTENT_MARKERS)


class RedirectFetcher:
    """
    SSRF-guarded HTTP GET with manual redirect handling.

    Args:
        resolver: async hostname -> addresses lookup (injectable for tests)
        transport: optional httpx transport (tests use httpx.MockTransport)
        timeout_seconds: wall-clock limit per hop
        max_hops: requests allowed before giving up on a redirect chain
    """

    def __init__(
        self,
        resolver: Resolver = resolve_addresses,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout_seconds: float = FETCH_TIMEOUT_SECONDS,
        max_hops: int = MAX_HOPS,
    ):
        self._resolver = resolver
        self._transport = transport
        self._timeout_seconds = timeout_seconds
        self._max_hops = max_hops

    async def fetch(self, start_url: str, max_bytes: int = DEFAULT_MAX_BYTES) -> FetchResult:
        request = FetchRequest(url=start_url, max_bytes=max_bytes)

        error = validate_url(request.url)
        if error is not None:
            return FetchResult.fail(error)

        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                follow_redirects=False,
                timeout=self._timeout_seconds,
                headers={"User-Agent": USER_AGENT},
            ) as client:
                return await self._follow(client, request)
        except httpx.InvalidURL:
            return FetchResult.fail(FetchErrorKind.INVALID_URL)
        except (httpx.HTTPError, OSError) as e:
            logger.info(f"Fetch of {request.url} failed: {e!r}")
            return FetchResult.fail(FetchErrorKind.FETCH_FAILED, detail=str(e) or type(e).__name__)

    async def _follow(self, client: httpx.AsyncClient, request: FetchRequest) -> FetchResult:
        current_url = request.url

        for hop in range(self._max_hops):
            error = validate_url(current_url)
            if error is not None:
                return FetchResult.fail(error)

            hostname = urlsplit(current_url).hostname or ""
            if is_host_forbidden(hostname):
                logger.warning(f"Blocked fetch to forbidden host {hostname} (hop {hop + 1})")
                return FetchResult.fail(FetchErrorKind.BLOCKED_HOST)
            # One deadline covers both the address check and the request.
            try:
                hop_response = await asyncio.wait_for(
                    self._checked_hop(client, hostname, current_url, request.max_bytes, hop),
                    timeout=self._timeout_seconds,
                )
            except asyncio.TimeoutError:
                return FetchResult.fail(
                    FetchErrorKind.FETCH_FAILED,
                    detail=f"timed out after {self._timeout_seconds:g}s",
                )
            if hop_response is None:
                return FetchResult.fail(FetchErrorKind.PRIVATE_IP_BLOCKED)

            if hop_response.location is not None:
                current_url = urljoin(current_url, hop_response.location)
                continue

            return FetchResult.success(
                status=hop_response.status,
                final_url=current_url,
                content_type=hop_response.content_type,
                body_text=hop_response.body_text,
                truncated=hop_response.truncated,
            )

        return FetchResult.fail(FetchErrorKind.TOO_MANY_REDIRECTS)

    async def _checked_hop(
        self,
        client: httpx.AsyncClient,
        hostname: str,
        url: str,
        max_bytes: int,
        hop: int,
    ) -> Optional[_HopResponse]:
        """Address check then request for one hop; None when the host resolves privately."""
        safe = await resolve_and_check(hostname, resolver=self._resolver)
        if not safe:
            logger.warning(f"Blocked fetch to private address behind {hostname} (hop {hop + 1})")
            return None

        logger.debug(f"Fetching {url} (hop {hop + 1}/{self._max_hops})")
        return await self._request_hop(client, url, max_bytes)

    async def _request_hop(self, client: httpx.AsyncClient, url: str, max_bytes: int) -> _HopResponse:
        # The transport resolves the host again here; a rebinding DNS answer
        # between the check and the connect is not caught.
        async with client.stream("GET", url) as response:
            location = response.headers.get("location")
            if response.status_code in REDIRECT_STATUSES and location:
                return _HopResponse(status=response.status_code, location=location)

            content_type = response.headers.get("content-type")
            if not is_text_content(content_type):
                return _HopResponse(status=response.status_code, content_type=content_type)

            body, truncated = await read_limited(response, max_bytes)
            encoding = response.charset_encoding or "utf-8"
            try:
                text = body.decode(encoding, errors="replace")
            except LookupError:
                text = body.decode("utf-8", errors="replace")
            return _HopResponse(
                status=response.status_code,
                content_type=content_type,
                body_text=text,
                truncated=truncated,
            )


async def read_limited(response: httpx.Response, max_bytes: int) -> Tuple[bytes, bool]:
    """
    Read at most max_bytes from a streaming response.

    Returns:
        (body, truncated)
    """
    chunks = []
    total = 0
    truncated = False
    async for chunk in response.aiter_bytes():
        if not chunk:
            continue
        remaining = max_bytes - total
        if remaining <= 0:
            truncated = True
            break
        if len(chunk) > remaining:
            chunks.append(chunk[:remaining])
            total += remaining
            truncated = True
            break
        chunks.append(chunk)
        total += len(chunk)
    return b"".join(chunks), truncated
