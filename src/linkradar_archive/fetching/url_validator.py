"""URL validation with scheme allow-listing and DNS-based SSRF protection.

validate_url() keeps no state and never issues an HTTP request, so the fetcher
calls it again for every redirect target. Its only side effect is DNS resolution.
"""

import asyncio
import ipaddress
import logging
import socket
from urllib.parse import urlsplit

from linkradar_archive.models.errors import ErrorCode, FetchError

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")

# Reserved, private, loopback, link-local, documentation and multicast ranges.
# Anything ipaddress does not consider globally routable is blocked as well.
BLOCKED_NETWORKS = tuple(
    ipaddress.ip_network(cidr)
    for cidr in (
        "0.0.0.0/8",
        "10.0.0.0/8",
        "100.64.0.0/10",
        "127.0.0.0/8",
        "169.254.0.0/16",
        "172.16.0.0/12",
        "192.0.0.0/24",
        "192.0.2.0/24",
        "192.168.0.0/16",
        "198.18.0.0/15",
        "198.51.100.0/24",
        "203.0.113.0/24",
        "224.0.0.0/4",
        "240.0.0.0/4",
        "::/128",
        "::1/128",
        "64:ff9b::/96",
        "100::/64",
        "2001:db8::/32",
        "fc00::/7",
        "fe80::/10",
        "ff00::/8",
    )
)


async def resolve_host(hostname: str) -> list[str]:
    """Resolve a hostname to its unique IP address strings (A and AAAA)."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
    return list(dict.fromkeys(info[4][0] for info in infos))


def is_blocked_address(address: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    """Return True if the address must never be fetched (SSRF protection)."""
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    if not address.is_global:
        return True
    return any(address in network for network in BLOCKED_NETWORKS)


async def validate_url(url: str) -> str | FetchError:
    """Validate a URL before fetching it.

    Checks, in order, each short-circuiting:
    1. URL parses and has a host (else invalid_url)
    2. Scheme is http or https (else invalid_url)
    3. Every address the host resolves to is public (else blocked);
       a host that does not resolve is invalid_url

    Returns the URL unchanged on success, or a FetchError.
    """
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
        parts.port  # raises ValueError on an out-of-range or non-numeric port
    except (ValueError, TypeError, AttributeError) as exc:
        return FetchError(
            error_code=ErrorCode.INVALID_URL,
            error_message=f"Malformed URL: {exc}",
            url=str(url),
        )

    if not hostname:
        return FetchError(
            error_code=ErrorCode.INVALID_URL,
            error_message="Invalid URL format",
            url=url,
        )

    scheme = parts.scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        return FetchError(
            error_code=ErrorCode.INVALID_URL,
            error_message="URL scheme must be http or https",
            url=url,
            details={"scheme": parts.scheme, "allowed_schemes": list(ALLOWED_SCHEMES)},
        )

    try:
        addresses = [ipaddress.ip_address(hostname)]
    except ValueError:
        try:
            resolved = await resolve_host(hostname)
        except (OSError, UnicodeError) as exc:
            return FetchError(
                error_code=ErrorCode.INVALID_URL,
                error_message=f"DNS resolution failed: {exc}",
                url=url,
                details={"hostname": hostname},
            )
        addresses = [ipaddress.ip_address(a) for a in resolved]

    if not addresses:
        return FetchError(
            error_code=ErrorCode.INVALID_URL,
            error_message="DNS resolution returned no addresses",
            url=url,
            details={"hostname": hostname},
        )

    blocked = [str(a) for a in addresses if is_blocked_address(a)]
    if blocked:
        logger.warning("Blocked URL resolving to private address: %s -> %s", url, blocked)
        return FetchError(
            error_code=ErrorCode.BLOCKED,
            error_message="URL resolves to private IP address (SSRF protection)",
            url=url,
            details={
                "hostname": hostname,
                "addresses": blocked,
                "validation_reason": "private_ip",
            },
        )

    return url
