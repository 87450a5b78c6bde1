"""Plain-text helpers used by fallbacks and previews"""

import logging
import re

from bs4 import BeautifulSoup


logger = logging.getLogger(__name__)

BLOCK_TAGS = (
    "address", "article", "aside", "blockquote", "dd", "div", "dl", "dt", "figcaption",
    "figure", "footer", "h1", "h2", "h3", "h4", "h5", "h6", "header", "hr", "li",
    "main", "nav", "ol", "p", "pre", "section", "table", "tr", "ul",
)
HIDDEN_TAGS = ("head", "script", "style", "template", "noscript")

_TAG_RE = re.compile(r"<[^>]*>")
_PARAGRAPH_BREAK_RE = re.compile(r"\n[ \t\r\f\v]*\n\s*")


def split_paragraphs(text: str) -> list[str]:
    """Split text on blank lines; whitespace inside each paragraph is collapsed."""
    chunks = (" ".join(chunk.split()) for chunk in _PARAGRAPH_BREAK_RE.split(text or ""))
    return [c for c in chunks if c]


def plain_text(markup: str) -> str:
    """Return the text content of markup with block elements separated by blank lines."""
    if not markup or not markup.strip():
        return ""
    try:
        soup = BeautifulSoup(markup, "html.parser")
        for el in soup.find_all(HIDDEN_TAGS):
            if not el.decomposed:
                el.decompose()
        for el in soup.find_all(BLOCK_TAGS):
            el.insert_before("\n\n")
            el.insert_after("\n\n")
        text = soup.get_text()
    except Exception as e:
        logger.debug("Falling back to tag stripping for plain text: %s", e)
        text = _TAG_RE.sub(" ", markup)
    return "\n\n".join(split_paragraphs(text))


def truncate(text: str, limit: int) -> str:
    """Cut text to limit characters, marking the cut with '...'."""
    return text if len(text) <= limit else f"{text[:limit]}..."
