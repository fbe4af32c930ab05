import asyncio
import ipaddress

import httpx
import pytest

from fetcher.redirect_fetcher import RedirectFetcher, is_text_content, validate_url
from schemas.fetch import MAX_BYTES_CEILING, FetchErrorKind
from tests.helpers import static_resolver

PUBLIC = ["93.184.216.34"]


def make_fetcher(handler, table=None, **kwargs):
    resolver = static_resolver(table or {
        "shop.example": PUBLIC,
        "cdn.example": PUBLIC,
        "evil.example": ["10.0.0.5"],
    })
    fetcher = RedirectFetcher(resolver=resolver, transport=httpx.MockTransport(handler), **kwargs)
    return fetcher, resolver


def redirect_chain(length: int):
    """/hop/0 -> /hop/1 -> ... -> /hop/<length>, which answers 200."""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        n = int(request.url.path.rsplit("/", 1)[-1])
        if n < length:
            return httpx.Response(302, headers={"Location": f"/hop/{n + 1}"})
        return httpx.Response(200, headers={"Content-Type": "text/html"}, text="<p>landed</p>")

    return handler, seen


# =========================================================================
# URL validation
# =========================================================================


@pytest.mark.parametrize("url,kind", [
    ("ftp://shop.example/file", FetchErrorKind.UNSUPPORTED_PROTOCOL),
    ("file:///etc/passwd", FetchErrorKind.UNSUPPORTED_PROTOCOL),
    ("javascript:alert(1)", FetchErrorKind.UNSUPPORTED_PROTOCOL),
    ("shop.example/deals", FetchErrorKind.INVALID_URL),
    ("http://", FetchErrorKind.INVALID_URL),
    ("http://[::1", FetchErrorKind.INVALID_URL),
    ("", FetchErrorKind.INVALID_URL),
])
def test_validate_url_rejects(url, kind):
    assert validate_url(url) == kind


def test_validate_url_accepts_http_and_https():
    assert validate_url("http://shop.example/a") is None
    assert validate_url("HTTPS://shop.example/a?b=c") is None


@pytest.mark.parametrize("content_type,expected", [
    ("text/html; charset=utf-8", True),
    ("application/json", True),
    ("application/ld+json", True),
    ("application/xhtml+xml", True),
    ("text/plain", True),
    ("image/png", False),
    ("application/octet-stream", False),
    (None, False),
])
def test_is_text_content(content_type, expected):
    assert is_text_content(content_type) is expected


@pytest.mark.asyncio
async def test_rejected_url_makes_no_request():
    calls = []
    fetcher, resolver = make_fetcher(lambda r: calls.append(r) or httpx.Response(200))

    result = await fetcher.fetch("gopher://shop.example/")

    assert result.ok is False
    assert result.error == FetchErrorKind.UNSUPPORTED_PROTOCOL
    assert calls == []
    assert resolver.asked == []


# =========================================================================
# Host blocking
# =========================================================================


@pytest.mark.asyncio
@pytest.mark.parametrize("host", ["localhost", "0.0.0.0", "x.local", "x.internal", "metadata.google.internal"])
async def test_literal_hosts_blocked_without_resolution(host):
    calls = []
    fetcher, resolver = make_fetcher(lambda r: calls.append(r) or httpx.Response(200))

    result = await fetcher.fetch(f"http://{host}/latest/meta-data")

    assert result.error == FetchErrorKind.BLOCKED_HOST
    assert resolver.asked == []
    assert calls == []


@pytest.mark.asyncio
async def test_private_resolution_blocked():
    calls = []
    fetcher, _ = make_fetcher(lambda r: calls.append(r) or httpx.Response(200))

    result = await fetcher.fetch("http://evil.example/admin")

    assert result.error == FetchErrorKind.PRIVATE_IP_BLOCKED
    assert calls == []


@pytest.mark.asyncio
async def test_private_ip_literal_blocked():
    fetcher, _ = make_fetcher(lambda r: httpx.Response(200))
    result = await fetcher.fetch("http://169.254.169.254/latest/meta-data/")
    assert result.error == FetchErrorKind.PRIVATE_IP_BLOCKED


@pytest.mark.asyncio
async def test_redirect_to_private_host_blocked_on_second_hop():
    seen = []

    def handler(request):
        seen.append(request.url.host)
        return httpx.Response(301, headers={"Location": "http://evil.example/secrets"})

    fetcher, resolver = make_fetcher(handler)
    result = await fetcher.fetch("https://shop.example/deal")

    assert result.error == FetchErrorKind.PRIVATE_IP_BLOCKED
    assert seen == ["shop.example"]
    assert resolver.asked == ["shop.example", "evil.example"]


@pytest.mark.asyncio
async def test_redirect_to_literal_forbidden_host_blocked():
    fetcher, _ = make_fetcher(lambda r: httpx.Response(302, headers={"Location": "http://localhost:8080/"}))
    result = await fetcher.fetch("https://shop.example/")
    assert result.error == FetchErrorKind.BLOCKED_HOST


@pytest.mark.asyncio
async def test_redirect_to_other_scheme_rejected():
    fetcher, _ = make_fetcher(lambda r: httpx.Response(302, headers={"Location": "ftp://shop.example/x"}))
    result = await fetcher.fetch("https://shop.example/")
    assert result.error == FetchErrorKind.UNSUPPORTED_PROTOCOL


# =========================================================================
# Redirect ceiling
# =========================================================================


@pytest.mark.asyncio
async def test_four_redirects_then_success():
    handler, seen = redirect_chain(4)
    fetcher, _ = make_fetcher(handler)

    result = await fetcher.fetch("https://shop.example/hop/0")

    assert result.ok is True
    assert result.status == 200
    assert result.final_url == "https://shop.example/hop/4"
    assert "landed" in result.body_text
    assert len(seen) == 5


@pytest.mark.asyncio
async def test_six_redirects_is_too_many():
    handler, seen = redirect_chain(6)
    fetcher, _ = make_fetcher(handler)

    result = await fetcher.fetch("https://shop.example/hop/0")

    assert result.ok is False
    assert result.error == FetchErrorKind.TOO_MANY_REDIRECTS
    assert len(seen) == 5


@pytest.mark.asyncio
async def test_redirect_location_resolved_against_current_url():
    def handler(request):
        if request.url.host == "shop.example":
            return httpx.Response(307, headers={"Location": "https://cdn.example/p/1?ref=x"})
        return httpx.Response(200, headers={"Content-Type": "application/json"}, text='{"price": 19.99}')

    fetcher, _ = make_fetcher(handler)
    result = await fetcher.fetch("https://shop.example/item")

    assert result.ok
    assert result.final_url == "https://cdn.example/p/1?ref=x"
    assert result.body_text == '{"price": 19.99}'


@pytest.mark.asyncio
async def test_redirect_status_without_location_is_terminal():
    fetcher, _ = make_fetcher(lambda r: httpx.Response(302, headers={"Content-Type": "text/plain"}, text="moved"))
    result = await fetcher.fetch("https://shop.example/")
    assert result.ok
    assert result.status == 302
    assert result.body_text == "moved"


# =========================================================================
# Body handling
# =========================================================================


@pytest.mark.asyncio
async def test_body_truncated_to_max_bytes():
    fetcher, _ = make_fetcher(lambda r: httpx.Response(200, headers={"Content-Type": "text/plain"}, content=b"a" * 5000))

    result = await fetcher.fetch("https://shop.example/big", max_bytes=1234)

    assert len(result.body_text) == 1234
    assert result.truncated is True


@pytest.mark.asyncio
async def test_short_body_returned_whole():
    fetcher, _ = make_fetcher(lambda r: httpx.Response(200, headers={"Content-Type": "text/plain"}, content=b"tiny"))

    result = await fetcher.fetch("https://shop.example/small", max_bytes=1000)

    assert result.body_text == "tiny"
    assert result.truncated is False


@pytest.mark.asyncio
async def test_max_bytes_clamped_to_ceiling():
    body = b"b" * (MAX_BYTES_CEILING + 10)
    fetcher, _ = make_fetcher(lambda r: httpx.Response(200, headers={"Content-Type": "text/plain"}, content=body))

    result = await fetcher.fetch("https://shop.example/huge", max_bytes=10 * MAX_BYTES_CEILING)

    assert len(result.body_text) == MAX_BYTES_CEILING


@pytest.mark.asyncio
async def test_binary_content_yields_empty_body():
    fetcher, _ = make_fetcher(lambda r: httpx.Response(200, headers={"Content-Type": "image/png"}, content=b"\x89PNG\r\n"))

    result = await fetcher.fetch("https://shop.example/pic.png")

    assert result.ok
    assert result.content_type == "image/png"
    assert result.body_text == ""


@pytest.mark.asyncio
async def test_non_success_status_is_still_a_result():
    fetcher, _ = make_fetcher(lambda r: httpx.Response(404, headers={"Content-Type": "text/html"}, text="nope"))
    result = await fetcher.fetch("https://shop.example/missing")
    assert result.ok is True
    assert result.status == 404


@pytest.mark.asyncio
async def test_charset_respected():
    body = "café".encode("latin-1")
    fetcher, _ = make_fetcher(lambda r: httpx.Response(200, headers={"Content-Type": "text/plain; charset=latin-1"}, content=body))
    result = await fetcher.fetch("https://shop.example/fr")
    assert result.body_text == "café"


# =========================================================================
# Transport failures
# =========================================================================


@pytest.mark.asyncio
async def test_transport_error_reported_not_raised():
    def handler(request):
        raise httpx.ConnectError("connection reset by peer", request=request)

    fetcher, _ = make_fetcher(handler)
    result = await fetcher.fetch("https://shop.example/")

    assert result.ok is False
    assert result.error == FetchErrorKind.FETCH_FAILED
    assert "connection reset" in result.detail


@pytest.mark.asyncio
async def test_slow_hop_times_out():
    async def handler(request):
        await asyncio.sleep(5)
        return httpx.Response(200)

    fetcher, _ = make_fetcher(handler, timeout_seconds=0.05)
    result = await fetcher.fetch("https://shop.example/slow")

    assert result.error == FetchErrorKind.FETCH_FAILED
    assert "timed out" in result.detail


@pytest.mark.asyncio
async def test_lookup_and_request_share_one_hop_deadline():
    # Each half fits inside the limit on its own; together they do not.
    async def slow_resolver(hostname):
        await asyncio.sleep(0.3)
        return [ipaddress.ip_address(PUBLIC[0])]

    async def handler(request):
        await asyncio.sleep(0.3)
        return httpx.Response(200, headers={"Content-Type": "text/plain"}, text="late")

    fetcher = RedirectFetcher(
        resolver=slow_resolver,
        transport=httpx.MockTransport(handler),
        timeout_seconds=0.45,
    )
    result = await fetcher.fetch("https://shop.example/slow")

    assert result.ok is False
    assert result.error == FetchErrorKind.FETCH_FAILED
    assert "timed out after 0.45s" in result.detail


@pytest.mark.asyncio
async def test_failure_serializes_without_empty_fields():
    fetcher, _ = make_fetcher(lambda r: httpx.Response(200))
    result = await fetcher.fetch("http://localhost/")
    assert result.to_tool_output() == {"ok": False, "error": "blocked_host"}
