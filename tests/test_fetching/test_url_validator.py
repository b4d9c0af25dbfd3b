"""Tests for URL validation and SSRF protection."""

import ipaddress

import pytest

from linkradar_archive.fetching.url_validator import is_blocked_address, validate_url
from linkradar_archive.models.errors import ErrorCode, FetchError


@pytest.mark.asyncio
async def test_public_https_url_returned_unchanged(fake_dns):
    """A public URL is returned exactly as given (no normalization)."""
    url = "https://Example.com/path?q=1#frag"
    assert await validate_url(url) == url


@pytest.mark.asyncio
async def test_public_http_url_allowed(fake_dns):
    assert await validate_url("http://example.com/") == "http://example.com/"


@pytest.mark.asyncio
async def test_uppercase_scheme_allowed(fake_dns):
    assert await validate_url("HTTPS://example.com/") == "HTTPS://example.com/"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "url",
    [
        "ftp://example.com/file",
        "file:///etc/passwd",
        "javascript:alert(1)",
        "data:text/html,<script>alert(1)</script>",
        "gopher://example.com/",
    ],
)
async def test_disallowed_schemes_are_invalid(fake_dns, url):
    result = await validate_url(url)
    assert isinstance(result, FetchError)
    assert result.error_code == ErrorCode.INVALID_URL


@pytest.mark.asyncio
async def test_scheme_error_details(fake_dns):
    result = await validate_url("ftp://example.com/file")
    assert result.details == {"scheme": "ftp", "allowed_schemes": ["http", "https"]}


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["not a url", "", "https://", "http:///path-only"])
async def test_malformed_urls_are_invalid(fake_dns, url):
    result = await validate_url(url)
    assert isinstance(result, FetchError)
    assert result.error_code == ErrorCode.INVALID_URL


@pytest.mark.asyncio
async def test_bad_port_is_invalid(fake_dns):
    result = await validate_url("http://example.com:99999/")
    assert isinstance(result, FetchError)
    assert result.error_code == ErrorCode.INVALID_URL


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "url",
    [
        "http://127.0.0.1/",
        "http://127.0.0.1:8080/admin",
        "http://10.1.2.3/",
        "http://172.16.0.1/",
        "http://192.168.1.1/",
        "http://169.254.169.254/latest/meta-data/",
        "http://0.0.0.0/",
        "http://[::1]/",
        "http://[fe80::1]/",
        "http://[fd00::1]/",
        "http://[::ffff:127.0.0.1]/",
        "http://100.64.0.1/",
    ],
)
async def test_private_ip_literals_are_blocked(fake_dns, url):
    result = await validate_url(url)
    assert isinstance(result, FetchError)
    assert result.error_code == ErrorCode.BLOCKED
    assert "SSRF" in result.error_message


@pytest.mark.asyncio
async def test_localhost_hostname_is_blocked(fake_dns):
    result = await validate_url("http://localhost:3000/")
    assert isinstance(result, FetchError)
    assert result.error_code == ErrorCode.BLOCKED
    assert result.details["validation_reason"] == "private_ip"
    assert result.details["addresses"] == ["127.0.0.1"]


@pytest.mark.asyncio
async def test_hostname_resolving_to_private_ip_is_blocked(fake_dns):
    result = await validate_url("https://intranet.example.com/wiki")
    assert result.error_code == ErrorCode.BLOCKED
    assert result.details["hostname"] == "intranet.example.com"


@pytest.mark.asyncio
async def test_any_private_address_in_resolution_blocks(fake_dns):
    """One private address among public ones is enough to block (DNS rebinding)."""
    result = await validate_url("https://mixed.example.com/")
    assert result.error_code == ErrorCode.BLOCKED
    assert result.details["addresses"] == ["192.168.1.10"]


@pytest.mark.asyncio
async def test_dns_failure_is_invalid_url(fake_dns):
    result = await validate_url("https://nonexistent.invalid/")
    assert isinstance(result, FetchError)
    assert result.error_code == ErrorCode.INVALID_URL
    assert result.error_message.startswith("DNS resolution failed")
    assert result.details == {"hostname": "nonexistent.invalid"}


@pytest.mark.asyncio
async def test_empty_resolution_is_invalid_url(fake_dns):
    fake_dns["empty.example.com"] = []
    result = await validate_url("https://empty.example.com/")
    assert result.error_code == ErrorCode.INVALID_URL


@pytest.mark.asyncio
async def test_validation_is_stateless(fake_dns):
    """Repeated calls give the same answer; nothing is cached between calls."""
    assert await validate_url("https://example.com/") == "https://example.com/"
    fake_dns["example.com"] = ["10.0.0.1"]
    result = await validate_url("https://example.com/")
    assert result.error_code == ErrorCode.BLOCKED


@pytest.mark.parametrize(
    "address, blocked",
    [
        ("8.8.8.8", False),
        ("93.184.216.34", False),
        ("2606:4700:4700::1111", False),
        ("127.0.0.1", True),
        ("10.255.255.255", True),
        ("198.18.0.1", True),
        ("224.0.0.1", True),
        ("255.255.255.255", True),
        ("::", True),
        ("2001:db8::1", True),
        ("ff02::1", True),
        ("::ffff:10.0.0.1", True),
        ("::ffff:8.8.8.8", False),
    ],
)
def test_is_blocked_address(address, blocked):
    assert is_blocked_address(ipaddress.ip_address(address)) is blocked
