"""Tests for classify_error()."""

import asyncio

import httpx

from tinyclaw.errors import (
    DeliveryError,
    MediaFileNotFoundError,
    UnknownChannelError,
    UnknownMediaRefError,
    classify_error,
)


def _make_http_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://api.example.com/sendMessage")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError(
        f"{status_code} error", request=request, response=response
    )


# ── Domain errors ────────────────────────────────────────────

class TestDomainErrors:
    def test_unknown_channel(self):
        assert "'matrix' is not available" in classify_error(UnknownChannelError("matrix"))

    def test_missing_attachment_file(self):
        e = MediaFileNotFoundError(2, "media store: /x: No such file or directory", "/x")
        assert "could not be found" in classify_error(e)

    def test_released_attachment(self):
        assert "no longer available" in classify_error(UnknownMediaRefError("media://x"))

    def test_delivery_error_unwrapped(self):
        e = DeliveryError("telegram", "42", 1, _make_http_error(429))
        assert "Rate limited" in classify_error(e)
        assert "chunk 1" in str(e)

    def test_delivery_error_user_message(self):
        e = DeliveryError("discord", "7", 0, httpx.ConnectError("refused"))
        assert e.user_message == classify_error(e)
        assert "Cannot connect" in e.user_message


# ── httpx.HTTPStatusError ────────────────────────────────────

class TestHTTPStatusError:
    def test_429(self):
        assert "Rate limited" in classify_error(_make_http_error(429))

    def test_401(self):
        assert "Authentication" in classify_error(_make_http_error(401))

    def test_403(self):
        assert "Authentication" in classify_error(_make_http_error(403))

    def test_400(self):
        assert "rejected" in classify_error(_make_http_error(400))

    def test_500(self):
        assert "server issues" in classify_error(_make_http_error(500))

    def test_418(self):
        assert "HTTP 418" in classify_error(_make_http_error(418))


# ── Network / timeouts ───────────────────────────────────────

class TestNetwork:
    def test_connect_error(self):
        assert "Cannot connect" in classify_error(httpx.ConnectError("refused"))

    def test_read_timeout(self):
        assert "timed out" in classify_error(httpx.ReadTimeout("slow"))

    def test_asyncio_timeout(self):
        assert "timed out" in classify_error(asyncio.TimeoutError())


# ── Fallback ─────────────────────────────────────────────────

class TestFallback:
    def test_not_implemented(self):
        assert "not supported" in classify_error(NotImplementedError())

    def test_unknown(self):
        assert "ValueError" in classify_error(ValueError("boom"))
