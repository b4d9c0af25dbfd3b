"""Readable article extraction using readability-lxml."""

import logging

from readability import Document

from linkradar_archive.extraction.metadata import extract_page_metadata
from linkradar_archive.extraction.sanitizer import html_to_text, sanitize_html
from linkradar_archive.models.content import ArchiveMetadata, ContentKind, ParsedContent
from linkradar_archive.models.errors import ExtractionError

logger = logging.getLogger(__name__)


def extract_content(html: str, url: str) -> ParsedContent | ExtractionError:
    """Turn a fetched HTML document into sanitized, storable content.

    Pure and synchronous (no I/O); the orchestrator runs it via asyncio.to_thread().

    Stages, each converting any exception into an ExtractionError:
    1. Metadata: OpenGraph, Twitter Card, canonical URL, fallbacks
    2. Content: main article HTML via readability
    3. Sanitization: allow-list clean of the article HTML, then plain text
    """
    if not html or not html.strip():
        return ExtractionError(error_message="Empty HTML document", url=url)

    try:
        page = extract_page_metadata(html, url)
    except Exception as exc:
        return _stage_error("metadata", "Metadata extraction error", exc, url)

    try:
        article_html = Document(html, url=url).summary(html_partial=True)
    except Exception as exc:
        return _stage_error("content", "Content extraction error", exc, url)

    try:
        content_html = sanitize_html(article_html)
        content_text = html_to_text(content_html)
    except Exception as exc:
        return _stage_error("sanitization", "HTML sanitization error", exc, url)

    return ParsedContent(
        content_html=content_html,
        content_text=content_text,
        title=page.title,
        description=page.description,
        image_url=page.image_url,
        metadata=ArchiveMetadata(
            opengraph=page.opengraph,
            twitter=page.twitter,
            canonical_url=page.canonical_url,
            final_url=url,
            content_type=ContentKind.HTML,
        ),
    )


def _stage_error(stage: str, prefix: str, exc: Exception, url: str) -> ExtractionError:
    logger.warning("%s for %s: %s", prefix, url, exc)
    return ExtractionError(
        error_message=f"{prefix}: {exc}",
        url=url,
        details={"stage": stage, "error_class": type(exc).__name__},
    )
