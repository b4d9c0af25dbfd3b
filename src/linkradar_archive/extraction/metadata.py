"""Page metadata from OpenGraph, Twitter Card and plain HTML head tags."""

from dataclasses import dataclass
from urllib.parse import urljoin

import lxml.html

from linkradar_archive.models.content import OpenGraph, TwitterCard

OPENGRAPH_KEYS = ("title", "description", "image", "type", "url")
TWITTER_KEYS = ("card", "title", "description", "image")


@dataclass
class PageMetadata:
    """Unified title/description/image plus the raw metadata groups."""

    title: str | None
    description: str | None
    image_url: str | None
    opengraph: OpenGraph | None
    twitter: TwitterCard | None
    canonical_url: str | None


def parse_document(html: str) -> lxml.html.HtmlElement:
    """Parse an HTML string into an lxml document (tolerates encoding declarations)."""
    parser = lxml.html.HTMLParser(encoding="utf-8")
    return lxml.html.document_fromstring(html.encode("utf-8", errors="replace"), parser=parser)


def extract_page_metadata(html: str, url: str) -> PageMetadata:
    """Extract page metadata with a fixed fallback order.

    title / description / image_url fall back OpenGraph -> Twitter Card -> plain HTML
    (<title>, <meta name="description">, <link rel="image_src">, first <img>).
    Relative image and canonical URLs are resolved against url.
    """
    root = parse_document(html)
    tags = _meta_tags(root)

    opengraph = _group(OpenGraph, tags, "og:", OPENGRAPH_KEYS)
    twitter = _group(TwitterCard, tags, "twitter:", TWITTER_KEYS)

    title = tags.get("og:title") or tags.get("twitter:title") or _html_title(root)
    description = (
        tags.get("og:description") or tags.get("twitter:description") or tags.get("description")
    )
    image = (
        tags.get("og:image")
        or tags.get("twitter:image")
        or tags.get("twitter:image:src")
        or _link_href(root, "image_src")
        or _first_image(root)
    )
    canonical = _link_href(root, "canonical")

    return PageMetadata(
        title=title,
        description=description,
        image_url=urljoin(url, image) if image else None,
        opengraph=opengraph,
        twitter=twitter,
        canonical_url=urljoin(url, canonical) if canonical else None,
    )


def _collapse(value: str | None) -> str | None:
    if value is None:
        return None
    collapsed = " ".join(value.split())
    return collapsed or None


def _meta_tags(root: lxml.html.HtmlElement) -> dict[str, str]:
    """Map lowercased meta property/name keys to content. First occurrence wins."""
    tags: dict[str, str] = {}
    for meta in root.iter("meta"):
        content = _collapse(meta.get("content"))
        if content is None:
            continue
        for attr in ("property", "name"):
            key = (meta.get(attr) or "").strip().lower()
            if key and key not in tags:
                tags[key] = content
    return tags


def _group(model, tags: dict[str, str], prefix: str, keys: tuple[str, ...]):
    """Build an OpenGraph/TwitterCard group, or None when none of its tags exist."""
    values = {key: tags[prefix + key] for key in keys if prefix + key in tags}
    return model(**values) if values else None


def _html_title(root: lxml.html.HtmlElement) -> str | None:
    title = root.find(".//title")
    return _collapse(title.text_content()) if title is not None else None


def _link_href(root: lxml.html.HtmlElement, rel: str) -> str | None:
    for link in root.iter("link"):
        rels = (link.get("rel") or "").lower().split()
        href = (link.get("href") or "").strip()
        if rel in rels and href:
            return href
    return None


def _first_image(root: lxml.html.HtmlElement) -> str | None:
    for img in root.iter("img"):
        src = (img.get("src") or "").strip()
        if src and not src.lower().startswith("data:"):
            return src
    return None
