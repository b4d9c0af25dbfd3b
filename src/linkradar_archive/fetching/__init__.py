"""Network retrieval: URL validation (SSRF protection) and HTTP fetching.

Public API:
    validate_url(url) -> str | FetchError
    fetch_url(url) -> FetchedContent | FetchError | Retryable
"""

from linkradar_archive.fetching.fetcher import fetch_url
from linkradar_archive.fetching.url_validator import is_blocked_address, validate_url

__all__ = [
    "fetch_url",
    "validate_url",
    "is_blocked_address",
]
