"""Allow-list HTML sanitization for extracted article content.

Only the tags in ALLOWED_TAGS and attributes in ALLOWED_ATTRIBUTES survive.
Unknown tags are unwrapped (their text is kept); the tags in PRUNED_TAGS are
removed together with everything inside them.
"""

import lxml.html
from lxml.html.clean import Cleaner

ALLOWED_TAGS = frozenset(
    {
        "a", "abbr", "article", "b", "blockquote", "br", "caption", "cite", "code",
        "dd", "del", "details", "dfn", "div", "dl", "dt", "em", "figcaption", "figure",
        "h1", "h2", "h3", "h4", "h5", "h6", "hr", "i", "img", "ins", "kbd", "li",
        "mark", "ol", "p", "pre", "q", "s", "samp", "section", "small", "span",
        "strong", "sub", "summary", "sup", "table", "tbody", "td", "tfoot", "th",
        "thead", "time", "tr", "u", "ul", "var",
    }
)

ALLOWED_ATTRIBUTES = frozenset(
    {
        "alt", "cite", "colspan", "datetime", "dir", "headers", "height", "href",
        "lang", "rowspan", "scope", "src", "title", "width",
    }
)

PRUNED_TAGS = (
    "script", "style", "iframe", "object", "embed", "applet", "svg", "math",
    "noscript", "template", "form", "button", "input", "select", "textarea",
    "frame", "frameset", "link", "meta", "base",
)

_CLEANER = Cleaner(
    scripts=True,
    javascript=True,  # on* attributes and javascript:/vbscript:/data: links
    comments=True,
    style=True,
    inline_style=True,
    links=True,
    meta=True,
    page_structure=True,
    processing_instructions=True,
    embedded=True,
    frames=True,
    forms=True,
    annoying_tags=True,
    remove_unknown_tags=False,
    allow_tags=ALLOWED_TAGS,
    kill_tags=PRUNED_TAGS,
    safe_attrs_only=True,
    safe_attrs=ALLOWED_ATTRIBUTES,
    add_nofollow=False,
)


def sanitize_html(html: str) -> str:
    """Return an XSS-safe copy of an HTML fragment, wrapped in a single <div>.

    Raises on unparseable input; callers turn that into an ExtractionError.
    """
    if not html.strip():
        return ""
    fragment = lxml.html.fragment_fromstring(html, create_parent="div")
    _CLEANER(fragment)
    return lxml.html.tostring(fragment, encoding="unicode", method="html")


def html_to_text(html: str) -> str:
    """Plain text of an HTML fragment: entities decoded, script/style dropped, whitespace collapsed."""
    if not html.strip():
        return ""
    fragment = lxml.html.fragment_fromstring(html, create_parent="div")
    for element in list(fragment.iter("script", "style")):
        element.drop_tree()
    return " ".join(" ".join(fragment.itertext()).split())
