"""Markup sanitization: strip script-capable elements, event handlers and script URIs"""

import logging
import re

from bs4 import BeautifulSoup
from bs4.element import PreformattedString


logger = logging.getLogger(__name__)

BLOCKED_TAGS = (
    "script", "iframe", "object", "embed", "form", "style",
    "frame", "frameset", "base", "noscript", "meta",
)
URI_ATTRS = frozenset({"href", "src", "data", "action", "formaction", "xlink:href", "poster", "background"})
SCRIPT_SCHEMES = ("javascript:", "vbscript:")

# Browsers ignore whitespace and control characters inside a scheme ("java\tscript:").
_URI_NOISE_RE = re.compile(r"[\x00-\x20\x7f]+")
_STYLE_SCRIPT_RE = re.compile(r"expression\s*\(|javascript:|vbscript:", re.IGNORECASE)


def is_unsafe_uri(value) -> bool:
    """True if value is a URI a renderer would execute rather than load."""
    if isinstance(value, (list, tuple)):
        value = " ".join(value)
    compact = _URI_NOISE_RE.sub("", str(value)).lower()
    if compact.startswith(SCRIPT_SCHEMES):
        return True
    if compact.startswith("data:"):
        return not compact.startswith("data:image/") or compact.startswith("data:image/svg")
    return False


def _is_unsafe_candidate(candidate: str) -> bool:
    # A srcset candidate is "<url> [descriptor]".
    parts = candidate.split()
    return bool(parts) and is_unsafe_uri(parts[0])


def _is_unsafe_attr(name: str, value) -> bool:
    name = name.lower()
    if name.startswith("on") or name == "formaction":
        return True
    if name in URI_ATTRS:
        return is_unsafe_uri(value)
    if name == "srcset":
        return any(_is_unsafe_candidate(c) for c in str(value).split(","))
    if name == "style":
        return bool(_STYLE_SCRIPT_RE.search(str(value)))
    return False


def _scrub_node(node):
    if not isinstance(node, dict):
        return None
    attrs = node.get("attrs") or {}
    if node.get("type") == "image" and is_unsafe_uri(attrs.get("src") or ""):
        return None
    clean = dict(node)
    if "marks" in node:
        clean["marks"] = [
            m for m in node.get("marks") or []
            if not (isinstance(m, dict) and is_unsafe_uri((m.get("attrs") or {}).get("href") or ""))
        ]
    if isinstance(node.get("content"), list):
        clean["content"] = [c for c in (_scrub_node(child) for child in node["content"]) if c is not None]
    return clean


def sanitize_doc(doc):
    """Return a copy of a document tree without script URIs in links and images.

    Never raises; returns None when the tree cannot be walked.
    """
    try:
        return _scrub_node(doc)
    except Exception as e:
        logger.warning("Document sanitizer failed, discarding document: %s", e)
        return None


def sanitize(markup: str) -> str:
    """Return markup with script-executing elements, handlers and URIs removed.

    Comments, doctypes and the document head are dropped; for a full
    document only the body's inner markup is returned. Never raises: any
    internal failure yields an empty string instead of the unsanitized input.
    """
    if not markup or not markup.strip():
        return ""
    try:
        soup = BeautifulSoup(markup, "html.parser")
        for el in soup.find_all(BLOCKED_TAGS + ("head",)):
            if not el.decomposed:
                el.decompose()
        for node in soup.find_all(string=lambda s: isinstance(s, PreformattedString)):
            node.extract()
        for el in soup.find_all(True):
            for name in [n for n, v in el.attrs.items() if _is_unsafe_attr(n, v)]:
                del el[name]

        body = soup.find("body")
        if body is not None:
            return body.decode_contents().strip()
        for el in soup.find_all("html"):
            el.unwrap()
        return soup.decode().strip()
    except Exception as e:
        logger.warning("Sanitizer failed, discarding markup: %s", e)
        return ""
