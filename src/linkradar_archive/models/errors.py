"""Structured failure records produced by the fetch and extraction stages."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Error-kind tags stored as Archive.error_reason."""

    INVALID_URL = "invalid_url"
    BLOCKED = "blocked"
    SIZE_LIMIT = "size_limit"
    NETWORK_ERROR = "network_error"
    TOO_MANY_REDIRECTS = "too_many_redirects"
    TIMEOUT = "timeout"
    EXTRACTION_ERROR = "extraction_error"
    DISABLED = "disabled"
    UNEXPECTED_ERROR = "unexpected_error"


class FetchError(BaseModel):
    """Permanent failure from the URL validator or the HTTP fetcher."""

    error_code: ErrorCode
    error_message: str
    url: str
    http_status: int | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class ExtractionError(BaseModel):
    """Failure while parsing, extracting or sanitizing fetched HTML."""

    error_code: ErrorCode = ErrorCode.EXTRACTION_ERROR
    error_message: str
    url: str
    details: dict[str, Any] = Field(default_factory=dict)


class Retryable(BaseModel):
    """Transient fetch failure (timeout). The orchestrator decides whether to retry."""

    error: FetchError
