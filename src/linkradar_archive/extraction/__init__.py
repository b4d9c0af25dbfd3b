"""Content extraction: page metadata, readable article HTML and sanitization.

Public API:
    extract_content(html, url) -> ParsedContent | ExtractionError
        Pure function; no network access.
"""

from linkradar_archive.extraction.article import extract_content
from linkradar_archive.extraction.sanitizer import html_to_text, sanitize_html

__all__ = [
    "extract_content",
    "html_to_text",
    "sanitize_html",
]
