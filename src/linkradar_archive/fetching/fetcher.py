"""SSRF-safe HTTP fetching with manual redirect validation.

fetch_url() is the security boundary of the archive pipeline: the initial URL
and every redirect target pass through validate_url() before any request is
sent to them. Redirects are never followed automatically.

Results:
- FetchedContent: 2xx response body within the size ceiling
- FetchError: permanent failure (invalid/blocked URL, size limit, HTTP error
  status, too many redirects, connection failure)
- Retryable: connect/read timeout; the orchestrator owns the retry decision
"""

import logging
from typing import NamedTuple

import httpx

from linkradar_archive.config import Settings, get_settings
from linkradar_archive.fetching.url_validator import validate_url
from linkradar_archive.models.content import FetchedContent
from linkradar_archive.models.errors import ErrorCode, FetchError, Retryable

logger = logging.getLogger(__name__)

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


class _Hop(NamedTuple):
    response: httpx.Response
    body: bytes | None  # None for redirects and error statuses


class _BodyTooLarge(Exception):
    def __init__(self, received: int) -> None:
        super().__init__(f"body exceeded limit after {received} bytes")
        self.received = received


async def fetch_url(
    url: str, settings: Settings | None = None
) -> FetchedContent | FetchError | Retryable:
    """Fetch a URL with SSRF validation, size limits and timeouts.

    Steps:
    1. Validate the initial URL (failures returned unchanged)
    2. HEAD request: reject Content-Length above max_content_size without a GET
    3. GET with manual redirect handling, validating every redirect target
    4. Stream the body, enforcing max_content_size again

    Timeouts on any request come back as Retryable, never as FetchError.
    """
    settings = settings or get_settings()

    validated = await validate_url(url)
    if isinstance(validated, FetchError):
        return validated

    try:
        async with httpx.AsyncClient(
            headers={"User-Agent": settings.user_agent},
            timeout=httpx.Timeout(settings.read_timeout, connect=settings.connect_timeout),
            follow_redirects=False,
        ) as client:
            size_error = await _check_content_length(client, validated, settings)
            if size_error is not None:
                return size_error
            return await _fetch_with_redirect_validation(client, validated, settings)
    except httpx.TimeoutException as exc:
        logger.warning("Timeout fetching %s: %s", url, exc)
        return Retryable(
            error=FetchError(
                error_code=ErrorCode.TIMEOUT,
                error_message=f"Request timed out: {exc}",
                url=url,
                details={"error_class": type(exc).__name__},
            )
        )
    except httpx.TransportError as exc:
        return FetchError(
            error_code=ErrorCode.NETWORK_ERROR,
            error_message=f"Connection failed: {exc}",
            url=url,
            details={"error_class": type(exc).__name__},
        )
    except Exception as exc:
        logger.warning("Unexpected fetch error for %s: %s", url, exc, exc_info=True)
        return FetchError(
            error_code=ErrorCode.NETWORK_ERROR,
            error_message=f"HTTP fetch error: {exc}",
            url=url,
            details={"error_class": type(exc).__name__},
        )


async def _check_content_length(
    client: httpx.AsyncClient, url: str, settings: Settings
) -> FetchError | None:
    """Reject oversized content from its HEAD Content-Length.

    Fails closed: if the HEAD request cannot be made, the fetch does not proceed.
    Timeouts propagate so they are retried like GET timeouts.
    """
    try:
        response = await client.head(url)
    except httpx.TimeoutException:
        raise
    except Exception as exc:
        return FetchError(
            error_code=ErrorCode.NETWORK_ERROR,
            error_message=f"Unable to check content size: {exc}",
            url=url,
            details={"error_class": type(exc).__name__},
        )

    content_length = _parse_content_length(response.headers.get("content-length"))
    if content_length is not None and content_length > settings.max_content_size:
        return _size_limit_error(url, settings, content_length=content_length)
    return None


async def _fetch_with_redirect_validation(
    client: httpx.AsyncClient, url: str, settings: Settings
) -> FetchedContent | FetchError:
    """GET the URL, validating and following up to max_redirects redirects by hand."""
    current_url = url
    redirect_count = 0

    while True:
        try:
            hop = await _get(client, current_url, settings.max_content_size)
        except _BodyTooLarge as exc:
            return _size_limit_error(current_url, settings, received=exc.received)

        response = hop.response
        if response.status_code not in REDIRECT_STATUSES:
            break

        if redirect_count >= settings.max_redirects:
            return FetchError(
                error_code=ErrorCode.TOO_MANY_REDIRECTS,
                error_message=f"Too many redirects (exceeded {settings.max_redirects})",
                url=url,
                http_status=response.status_code,
                details={
                    "redirect_count": redirect_count,
                    "max_redirects": settings.max_redirects,
                    "last_url": current_url,
                },
            )

        location = response.headers.get("location")
        if not location:
            return FetchError(
                error_code=ErrorCode.NETWORK_ERROR,
                error_message="Redirect missing Location header",
                url=url,
                http_status=response.status_code,
                details={"current_url": current_url},
            )

        redirect_url = str(httpx.URL(current_url).join(location))
        validated = await validate_url(redirect_url)
        if isinstance(validated, FetchError):
            logger.warning(
                "Blocked redirect %s -> %s (%s)",
                current_url,
                redirect_url,
                validated.error_code.value,
            )
            return FetchError(
                error_code=ErrorCode.BLOCKED,
                error_message="Redirect target blocked (SSRF protection)",
                url=url,
                http_status=response.status_code,
                details={
                    "original_url": url,
                    "current_url": current_url,
                    "redirect_url": redirect_url,
                    "validation_error_code": validated.error_code.value,
                    "validation_error": validated.error_message,
                },
            )

        current_url = validated
        redirect_count += 1

    if not response.is_success:
        return FetchError(
            error_code=ErrorCode.NETWORK_ERROR,
            error_message=f"HTTP {response.status_code}: {response.reason_phrase}",
            url=url,
            http_status=response.status_code,
            details={"final_url": current_url},
        )

    return FetchedContent(
        body=_decode_body(hop.body or b"", response),
        status_code=response.status_code,
        final_url=str(response.url),
        content_type=response.headers.get("content-type"),
    )


async def _get(client: httpx.AsyncClient, url: str, max_bytes: int) -> _Hop:
    """Issue one GET. The body is only read for 2xx responses, and at most max_bytes of it."""
    async with client.stream("GET", url) as response:
        if not response.is_success:
            return _Hop(response=response, body=None)

        chunks: list[bytes] = []
        received = 0
        async for chunk in response.aiter_bytes():
            received += len(chunk)
            if received > max_bytes:
                raise _BodyTooLarge(received)
            chunks.append(chunk)
        return _Hop(response=response, body=b"".join(chunks))


def _parse_content_length(value: str | None) -> int | None:
    """Parse a Content-Length header. Missing or malformed values count as absent."""
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _size_limit_error(
    url: str,
    settings: Settings,
    content_length: int | None = None,
    received: int | None = None,
) -> FetchError:
    max_size_mb = round(settings.max_content_size / (1024 * 1024), 1)
    details: dict = {"max_size": settings.max_content_size}
    if content_length is not None:
        details["content_length"] = content_length
    if received is not None:
        details["bytes_received"] = received
    return FetchError(
        error_code=ErrorCode.SIZE_LIMIT,
        error_message=f"Content size exceeds {max_size_mb}MB limit",
        url=url,
        details=details,
    )


def _decode_body(body: bytes, response: httpx.Response) -> str:
    """Decode with the response charset, falling back to UTF-8 for unknown charsets."""
    encoding = response.charset_encoding or "utf-8"
    try:
        return body.decode(encoding, errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")
