"""Fetched and parsed content values passed between pipeline stages."""

from enum import Enum

from pydantic import BaseModel


class ContentKind(str, Enum):
    """Kind of content stored in ArchiveMetadata.content_type."""

    HTML = "html"
    PDF = "pdf"
    IMAGE = "image"
    VIDEO = "video"
    OTHER = "other"


class OpenGraph(BaseModel):
    """OpenGraph tags (og:*). Any subset may be absent."""

    title: str | None = None
    description: str | None = None
    image: str | None = None
    type: str | None = None
    url: str | None = None


class TwitterCard(BaseModel):
    """Twitter Card tags (twitter:*). Any subset may be absent."""

    card: str | None = None
    title: str | None = None
    description: str | None = None
    image: str | None = None


class ArchiveMetadata(BaseModel):
    """Structured metadata bag persisted on an Archive."""

    opengraph: OpenGraph | None = None  # None when the page has no og:* tags
    twitter: TwitterCard | None = None  # None when the page has no twitter:* tags
    canonical_url: str | None = None
    final_url: str  # URL actually fetched after redirects
    content_type: ContentKind = ContentKind.HTML


class FetchedContent(BaseModel):
    """Raw result of a successful HTTP round-trip, before extraction."""

    body: str
    status_code: int
    final_url: str
    content_type: str | None = None  # Raw Content-Type header value


class ParsedContent(BaseModel):
    """Extraction output, written verbatim into the Archive on success."""

    content_html: str  # Sanitized, safe to store and render
    content_text: str
    title: str | None = None
    description: str | None = None
    image_url: str | None = None
    metadata: ArchiveMetadata


def classify_content_type(content_type: str | None) -> ContentKind:
    """Map a raw Content-Type header to a ContentKind. Missing headers are OTHER."""
    if not content_type:
        return ContentKind.OTHER
    mime = content_type.split(";", 1)[0].strip().lower()
    if mime in ("text/html", "application/xhtml+xml"):
        return ContentKind.HTML
    if mime == "application/pdf":
        return ContentKind.PDF
    if mime.startswith("image/"):
        return ContentKind.IMAGE
    if mime.startswith("video/"):
        return ContentKind.VIDEO
    return ContentKind.OTHER
